# app/utils/money.py
from decimal import Decimal, InvalidOperation
from typing import Any

from app.core.exceptions import ValidationError

CENT = Decimal("0.01")
# Exclusive cap on amounts and balances; below it a double still holds every cent
MAX_AMOUNT = Decimal("10000000000000")


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Convert ``value`` to a two-digit Decimal without rounding.

    Floats go through ``str`` so 0.1 stays 0.1. Anything that is not a
    finite number with at most two fractional digits is a ValidationError.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range")
    if amount != quantized:
        raise ValidationError(f"{field} cannot have more than two decimal places")
    if abs(quantized) >= MAX_AMOUNT:
        raise ValidationError(f"{field} must be less than {MAX_AMOUNT:,}")
    return quantized


def to_positive_amount(value: Any, field: str = "amount") -> Decimal:
    amount = to_amount(value, field)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    return amount
