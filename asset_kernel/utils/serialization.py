"""
Deterministic serialization utilities.

Converts the frozen domain dataclasses into JSON-ready structures for the
interface layer, and produces canonical JSON/SHA-256 hashes for
configuration checksums.
"""

import dataclasses
import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def to_jsonable(obj: Any) -> Any:
    """
    Recursively convert ``obj`` into JSON-native types.

    Decimals become strings (no float round-trip), dates ISO strings,
    enums their values, dataclasses dicts of their fields.
    """
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_jsonable(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, float):
        raise TypeError("float values are not permitted in lifecycle payloads")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: Any) -> str:
    """
    Convert data to a canonical JSON string.

    Keys are sorted, no whitespace, special types handled by ``to_jsonable``.
    """
    return json.dumps(
        to_jsonable(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def hash_payload(data: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``data``."""
    return hashlib.sha256(canonicalize_json(data).encode("utf-8")).hexdigest()
