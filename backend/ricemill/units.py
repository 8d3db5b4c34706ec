# Overview: Fixed packaging units, domain enums and numeric coercion helpers.

from __future__ import annotations

from decimal import Decimal, InvalidOperation

# Bag sizes form a closed set; weights are fixed per bag.
BAG_WEIGHTS_KG = {
    "5kg": 5,
    "10kg": 10,
    "25kg": 25,
    "75kg": 75,
}
BAG_SIZES = tuple(BAG_WEIGHTS_KG)

RICE_TYPES = ("Basmati", "Sona Masoori", "Jasmine", "Brown Rice", "Parboiled", "Other")
QUALITY_GRADES = ("A+", "A", "B", "C")
STOCK_TYPES = ("paddy", "rice", "mixed")
PAYMENT_METHODS = ("cash", "cheque", "bank_transfer", "upi", "other")

KG_QUANT = Decimal("0.001")
MONEY_QUANT = Decimal("0.01")


def bag_weight_kg(bag_size: str) -> int:
    try:
        return BAG_WEIGHTS_KG[bag_size]
    except KeyError:
        raise ValueError(f"Invalid bag size '{bag_size}'. Must be one of: {', '.join(BAG_SIZES)}")


def to_decimal(value, *, quant: Decimal = MONEY_QUANT) -> Decimal:
    """
    Coerce JSON numbers / numeric strings to a quantized Decimal.

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("value must be a number")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValueError("value must be a number")
    if not d.is_finite():
        raise ValueError("value must be a finite number")
    return d.quantize(quant)


def as_number(value):
    """JSON-friendly view of a Decimal column (int when integral)."""
    if value is None:
        return None
    d = Decimal(value)
    if d == d.to_integral_value():
        return int(d)
    return float(d)
