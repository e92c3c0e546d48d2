from __future__ import annotations

import math
import re
from decimal import Decimal

from app.tillsync.engine.results import FieldResult
from app.tillsync.engine.schemas import FieldDeclaration, FieldType

ONE_YEAR_MS = 365 * 24 * 60 * 60 * 1000

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def is_missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def parse_number(value: object) -> float | None:
    """Float value of ``value`` or ``None`` when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_timestamp(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match is None:
            return None
        return int(match.group(1))
    return None


def format_number(value: float | int) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _enum_member(value: object, allowed: tuple) -> bool:
    return any(type(value) is type(option) and value == option for option in allowed)


def validate_field(name: str, value: object, declaration: FieldDeclaration, *, now_ms: int) -> FieldResult:
    if is_missing(value):
        if declaration.required:
            return FieldResult(valid=False, errors=(f"Field '{name}' is required",))
        return FieldResult(valid=True)

    errors: list[str] = []
    warnings: list[str] = []
    field_type = declaration.type

    if field_type is FieldType.STRING:
        if not isinstance(value, str):
            errors.append(f"Field '{name}' must be a string")
        else:
            if declaration.min_length is not None and len(value) < declaration.min_length:
                errors.append(f"Field '{name}' must be at least {declaration.min_length} characters")
            if declaration.max_length is not None and len(value) > declaration.max_length:
                errors.append(f"Field '{name}' must not exceed {declaration.max_length} characters")

    elif field_type is FieldType.NUMBER:
        number = parse_number(value)
        if number is None:
            errors.append(f"Field '{name}' must be a valid number")
        else:
            if declaration.min is not None and number < declaration.min:
                errors.append(f"Field '{name}' must be at least {format_number(declaration.min)}")
            if declaration.max is not None and number > declaration.max:
                errors.append(f"Field '{name}' must not exceed {format_number(declaration.max)}")

    elif field_type is FieldType.BOOLEAN:
        if not isinstance(value, bool):
            errors.append(f"Field '{name}' must be a boolean")

    elif field_type is FieldType.ARRAY:
        if not isinstance(value, (list, tuple)):
            errors.append(f"Field '{name}' must be an array")
        else:
            if declaration.min_items is not None and len(value) < declaration.min_items:
                errors.append(f"Field '{name}' must have at least {declaration.min_items} items")
            if declaration.max_items is not None and len(value) > declaration.max_items:
                errors.append(f"Field '{name}' must not have more than {declaration.max_items} items")

    elif field_type is FieldType.ENUM:
        if not _enum_member(value, declaration.values):
            errors.append(f"Field '{name}' must be one of: {', '.join(str(v) for v in declaration.values)}")

    elif field_type is FieldType.TIMESTAMP:
        timestamp = parse_timestamp(value)
        if timestamp is None or timestamp <= 0:
            errors.append(f"Field '{name}' must be a valid timestamp")
        elif timestamp < now_ms - ONE_YEAR_MS:
            warnings.append(f"Field '{name}' timestamp seems too old")
        elif timestamp > now_ms + ONE_YEAR_MS:
            warnings.append(f"Field '{name}' timestamp seems too far in future")

    return FieldResult(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
