"""Exact decimal money helpers shared by every balance computation."""

from decimal import Decimal, InvalidOperation

from posledger.core.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Matches NUMERIC(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """
    Parse a monetary value into a 2-place Decimal.

    Floats go through str() first so 0.1 stays 0.1 instead of its binary
    expansion. Values are never rounded: more than two decimal places is an
    error rather than a silent change of the amount.

    Raises:
        ValidationError: If value is not a finite number, has more than two
            decimal places, or exceeds MAX_AMOUNT in magnitude
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field})
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field}) from exc

    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field})

    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(
            f"{field} exceeds maximum allowed: {MAX_AMOUNT}",
            details={"field": field, "value": str(amount)},
        )

    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"{field} cannot have more than 2 decimal places",
            details={"field": field, "value": str(amount)},
        )

    return amount.quantize(CENT)


def to_positive_money(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """Parse a money value that must be strictly greater than zero."""
    amount = to_money(value, field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be greater than zero", details={"field": field})
    return amount


def to_non_negative_money(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """Parse a money value that may be zero but not negative."""
    amount = to_money(value, field)
    if amount < ZERO:
        raise ValidationError(f"{field} cannot be negative", details={"field": field})
    return amount
