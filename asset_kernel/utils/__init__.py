"""Utility modules for the asset kernel."""

from asset_kernel.utils.serialization import (
    canonicalize_json,
    hash_payload,
    to_jsonable,
)

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "to_jsonable",
]
