from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.core.exceptions import ValidationError

from ..utils import camelize

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
OPERATIONS = (INSERT, UPDATE, DELETE)

# older clients still call contacts "accounts"
TABLE_ALIASES = {"accounts": "contacts"}
KEY_ALIASES = {"accountId": "contactId"}


def normalize_table(table: str) -> str:
    return TABLE_ALIASES.get(table, table)


def normalize_row(row: Optional[dict]) -> Optional[dict]:
    """camelCase every key and fold the legacy aliases."""
    if row is None:
        return None
    normalized = {}
    for key, value in row.items():
        key = camelize(key) if "_" in key else key
        normalized[KEY_ALIASES.get(key, key)] = value
    return normalized


def _comparable(value):
    # "50.00", 50 and Decimal("50") all mean the same money amount
    if value is None or isinstance(value, bool):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)


def _as_id(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id value: {value!r}")


@dataclass
class ChangeEvent:
    """
    One committed change to a tracked table.

    `row` is the state after the change (INSERT/UPDATE) and `old_row` the
    state before it (UPDATE/DELETE). Both use camelCase column names.
    """

    table: str
    id: int
    op: str
    row: Optional[dict] = field(default=None)
    old_row: Optional[dict] = field(default=None)

    def __post_init__(self):
        self.table = normalize_table(self.table)
        self.row = normalize_row(self.row)
        self.old_row = normalize_row(self.old_row)

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Change event must be a JSON object.")

        table = payload.get("table")
        if not isinstance(table, str) or not table:
            raise ValidationError({"table": "This field is required."})

        op = str(payload.get("op") or payload.get("operation") or "").upper()
        if op not in OPERATIONS:
            raise ValidationError({"op": f"Must be one of {', '.join(OPERATIONS)}."})

        row = payload.get("row", payload.get("record"))
        old_row = payload.get("old_row", payload.get("oldRow", payload.get("old_record")))
        for name, value in (("row", row), ("old_row", old_row)):
            if value is not None and not isinstance(value, dict):
                raise ValidationError({name: "Must be an object."})

        row_id = payload.get("id")
        if row_id is None:
            row_id = (row or old_row or {}).get("id")
        row_id = _as_id(row_id)
        if row_id is None:
            raise ValidationError({"id": "This field is required."})

        return cls(table=table, id=row_id, op=op, row=row, old_row=old_row)

    @classmethod
    def for_instance(cls, instance, op, old_row=None):
        from ..serializers import to_row

        current = to_row(instance)
        if op == DELETE:
            return cls(instance._meta.db_table, instance.pk, op, old_row=current)
        return cls(instance._meta.db_table, instance.pk, op, row=current, old_row=old_row)

    def key_values(self, key):
        """
        Distinct non-null values of `key` this event touches: the new row's
        for INSERT, the old row's for DELETE and both for UPDATE, so moving
        a child between parents reaches both of them.
        """
        if key == "id":
            return [self.id]

        if self.op == INSERT:
            rows = [self.row]
        elif self.op == DELETE:
            rows = [self.old_row or self.row]
        else:
            rows = [self.row, self.old_row]

        values = []
        for row in rows:
            if not row:
                continue
            value = _as_id(row.get(key))
            if value is not None and value not in values:
                values.append(value)
        return values

    def changed(self, *keys):
        # without a previous image every column counts as changed
        if self.op != UPDATE or not self.old_row or not self.row:
            return True
        return any(
            _comparable(self.row.get(key)) != _comparable(self.old_row.get(key))
            for key in keys
        )
