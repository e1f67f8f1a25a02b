"""
Ticket metadata codec: generation, schema validation and JSON round-tripping.
"""

from .generator import (
    generate_metadata,
    generate_attributes,
    check_required_fields,
    metadata_to_json,
    parse_metadata,
)
from .validator import (
    validate_metadata,
    validate_metadata_json,
    is_valid_metadata,
)

__all__ = [
    "generate_metadata",
    "generate_attributes",
    "check_required_fields",
    "metadata_to_json",
    "parse_metadata",
    "validate_metadata",
    "validate_metadata_json",
    "is_valid_metadata",
]
