"""
Utility functions for the application.
"""
from typing import Any, Dict
from decimal import Decimal, InvalidOperation
from tripledger.core.exceptions import ValidationError

CENTS = Decimal("0.01")
# Largest amount a signed 64-bit cents column can hold
MAX_CENTS = 2 ** 63 - 1
MAX_AMOUNT = Decimal(MAX_CENTS) / 100


def to_cents(amount: Any, field: str = "amount") -> int:
    """
    Convert a decimal amount to integer cents.
    Rejects values that carry more than two fractional digits instead of rounding them,
    so a stored amount always equals what the caller sent.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a decimal number")
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(value) > MAX_AMOUNT:
        raise ValidationError(f"{field} must not exceed {MAX_AMOUNT}")
    try:
        quantized = value.quantize(CENTS)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a decimal number")
    if value != quantized:
        raise ValidationError(f"{field} must have at most two decimal places")
    return int(quantized * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENTS)


def format_amount(cents: int, symbol: str = "") -> str:
    """Human readable amount, e.g. '₹50.00'."""
    return f"{symbol}{from_cents(cents)}"


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
