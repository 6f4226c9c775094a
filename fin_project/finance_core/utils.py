import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Round a monetary amount to cents, half-up, the way it is stored."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # go through str() so floats from JSON do not leak binary noise
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {value!r}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def camelize(name: str) -> str:
    # total_amount -> totalAmount, contact_id -> contactId
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


_UPPER = re.compile(r"(?<!^)(?=[A-Z])")


def decamelize(name: str) -> str:
    # purchaseOrderId -> purchase_order_id
    return _UPPER.sub("_", name).lower()
