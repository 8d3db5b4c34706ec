# Overview: Request payload validation against model column metadata.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text

from .errors import ValidationError
from .time_utils import parse_iso_datetime
from .units import KG_QUANT, MONEY_QUANT, to_decimal


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: closed value sets per field
    - minimums: inclusive lower bounds for numeric fields
    - maximums: inclusive upper bounds for numeric fields
    - positive: numeric fields that must be strictly greater than zero
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    choices: dict[str, tuple] = field(default_factory=dict)
    minimums: dict[str, Any] = field(default_factory=dict)
    maximums: dict[str, Any] = field(default_factory=dict)
    positive: set[str] = field(default_factory=set)


def _columns_by_key(model) -> dict[str, Any]:
    return {c.key: c for c in model.__mapper__.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        quant = MONEY_QUANT if (coltype.scale or 0) <= 2 else KG_QUANT
        try:
            return to_decimal(value, quant=quant)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a string")
        s = str(value).strip()
        length = getattr(coltype, "length", None)
        if length and len(s) > length:
            raise ValidationError(f"{col.key} must be at most {length} characters")
        return s

    return value


def validate_payload(
    *,
    model,
    payload: dict | None,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - the policy allowlist, choices and numeric bounds
    - required_on_create (if partial=False)

    Unknown keys are ignored. Returns a cleaned dict with only writable fields.
    Raises ValidationError on the first problem found.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("JSON object body required")

    cols = _columns_by_key(model)
    cleaned: dict[str, Any] = {}

    for key in policy.writable_fields:
        if key not in payload:
            continue
        col = cols.get(key)
        if col is None:
            raise ValidationError(f"{key} is not a field of {model.__name__}")
        value = _coerce_value(col, payload[key])
        if value == "":
            value = None
        if value is None:
            if not col.nullable and (not partial or key in policy.required_on_create):
                raise ValidationError(f"{key} is required")
            cleaned[key] = None
            continue

        allowed = policy.choices.get(key)
        if allowed is not None and value not in allowed:
            raise ValidationError(f"{key} must be one of: {', '.join(map(str, allowed))}")

        minimum = policy.minimums.get(key)
        if minimum is not None and value < minimum:
            raise ValidationError(f"{key} must be at least {minimum}")

        maximum = policy.maximums.get(key)
        if maximum is not None and value > maximum:
            raise ValidationError(f"{key} must be at most {maximum}")

        if key in policy.positive and value <= 0:
            raise ValidationError(f"{key} must be greater than 0")

        cleaned[key] = value

    if not partial:
        missing = sorted(k for k in policy.required_on_create if cleaned.get(k) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

    return cleaned


def require_text(payload: dict, key: str) -> str:
    """Required non-empty string field outside any model policy."""
    value = payload.get(key)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    return value.strip()


def optional_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None


def require_amount(payload: dict, key: str = "amount") -> Decimal:
    """Required money amount, >= 0."""
    if payload.get(key) is None:
        raise ValidationError(f"{key} is required")
    try:
        amount = to_decimal(payload[key])
    except ValueError:
        raise ValidationError(f"{key} must be a number")
    if amount < 0:
        raise ValidationError(f"{key} must be at least 0")
    return amount
