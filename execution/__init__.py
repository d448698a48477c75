"""Execution package: payload building and legacy conversion."""
from .payload_builder import (
    LEGACY_UNMAPPED_FIELDS,
    build_execution_payload,
    from_legacy_format,
    to_legacy_format,
)

__all__ = [
    "LEGACY_UNMAPPED_FIELDS",
    "build_execution_payload",
    "from_legacy_format",
    "to_legacy_format",
]
