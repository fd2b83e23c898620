"""Helpers for reading JSON bodies and query arguments in blueprints."""
from datetime import date
from typing import Any, Dict, Optional

from flask import request

from florapos.exceptions import ValidationError


def json_body() -> Dict[str, Any]:
    """Request JSON object, or {} for an empty body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def date_arg(name: str) -> Optional[date]:
    """Parse a YYYY-MM-DD query argument."""
    value = request.args.get(name, '').strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'Invalid date for "{name}": {value}')


def int_value(value, field: str) -> int:
    """Coerce a JSON value to int; bools and fractions are rejected."""
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')
