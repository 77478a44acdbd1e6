"""
Serialization Boundary
======================
Everything written to the document store passes through ``to_plain_data`` first.

Conversion rules:
- None, bool and str are stored unchanged
- int is stored unchanged when it fits in a signed 64-bit BSON integer
- float is stored unchanged when finite; NaN and +/-inf become None
- Decimal becomes float
- datetime is stored as a BSON date; date becomes an ISO-8601 string
- Enum members are replaced by their value
- pydantic models are dumped and converted recursively
- mappings are converted recursively; keys must be non-empty strings that do
  not start with "$" and contain neither "." nor NUL
- lists and tuples become lists; sets and frozensets become lists

Any other type raises SerializationError instead of being dropped.
"""

import math
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel

from errors import SerializationError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _check_key(key: Any, path: str) -> str:
    if not isinstance(key, str):
        raise SerializationError(f"Field names must be strings (at {path}).")
    if not key or key.startswith("$") or "." in key or "\x00" in key:
        raise SerializationError(f"Invalid field name '{key}' (at {path}).")
    return key


def to_plain_data(value: Any, path: str = "$") -> Any:
    """
    Convert a value to plain data the document store can hold.

    Args:
        value: Value to convert (typically a parsed JSON request body)
        path: Location of ``value`` in the enclosing document, used in error messages

    Returns:
        The converted value

    Raises:
        SerializationError: If the value (or anything nested in it) has no defined conversion
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise SerializationError(f"Integer out of range (at {path}).")
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return to_plain_data(float(value), path)
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return to_plain_data(value.value, path)
    if isinstance(value, BaseModel):
        return to_plain_data(value.model_dump(), path)
    if isinstance(value, Mapping):
        return {
            _check_key(key, path): to_plain_data(item, f"{path}.{key}")
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain_data(item, f"{path}[{i}]") for i, item in enumerate(value)]

    raise SerializationError(
        f"Unsupported value of type {type(value).__name__} (at {path})."
    )
