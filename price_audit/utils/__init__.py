"""
Shared utilities and helpers.
"""

import json
import math
import uuid
from typing import Any, Dict
from datetime import date, datetime


def serialize_for_json(obj: Any) -> Any:
    """Serialize objects that aren't JSON-serializable by default."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif hasattr(obj, 'model_dump'):  # Pydantic model
        return obj.model_dump(by_alias=True)
    elif hasattr(obj, '__dict__'):
        return obj.__dict__
    return str(obj)


def dict_to_json_string(data: Dict) -> str:
    """Convert dict to JSON string, handling non-serializable types."""
    return json.dumps(data, default=serialize_for_json, indent=2)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division with default value."""
    if denominator == 0:
        return default
    return numerator / denominator


def calculate_percent_change(new_value: float, old_value: float) -> float:
    """Signed percentage change from old_value to new_value (0 when old_value is 0)."""
    return safe_divide(new_value - old_value, old_value) * 100


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Best-effort float conversion for untrusted numeric fields."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
        if not value:
            return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def new_id(prefix: str) -> str:
    """Generate a synthetic record id such as ``inv-3f9c2a1b0d4e``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
