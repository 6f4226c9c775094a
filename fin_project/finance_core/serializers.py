import datetime
from decimal import Decimal

from .utils import camelize

# never leave the server
HIDDEN_FIELDS = {"pin"}


def to_json_value(value):
    if isinstance(value, Decimal):
        # strings keep the cents exact on the client
        return str(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


def to_row(instance, extra=None):
    """
    Flat camelCase snapshot of a model row, the shape used both by the
    JSON API and by change events (contact_id -> contactId).
    """
    row = {
        camelize(f.attname): to_json_value(getattr(instance, f.attname))
        for f in instance._meta.concrete_fields
        if f.attname not in HIDDEN_FIELDS
    }
    if extra:
        row.update({key: to_json_value(value) for key, value in extra.items()})
    return row


def to_rows(objects):
    return [to_row(obj) for obj in objects]


def serialize_product(product):
    return to_row(
        product,
        extra={
            "stockValue": product.stock_value,
            "needsReorder": product.needs_reorder,
        },
    )


def serialize_document_with_contact(document):
    # list views show who the document is for without a second request
    return to_row(document, extra={"contactName": document.contact.name})
