"""JSON helpers that understand enums, datetimes and Pydantic models."""

import json
from typing import Any

from pydantic_core import to_jsonable_python


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps that falls back to Pydantic's serializer for non-JSON types."""
    return json.dumps(obj, default=lambda value: to_jsonable_python(value, fallback=str), **kwargs)
