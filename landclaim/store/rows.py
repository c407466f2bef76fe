"""Helpers for decoding asyncpg rows."""

import json
from typing import Any, Dict, Optional


def decode_json(value: Any) -> Optional[Dict[str, Any]]:
    """Decode a json/jsonb column, which asyncpg returns as text by default."""
    if value is None:
        return None
    if isinstance(value, str):
        return json.loads(value)
    return value
