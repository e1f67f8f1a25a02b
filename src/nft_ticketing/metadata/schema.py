"""
Declarative schema for ticket metadata documents.

Each document key is described by a FieldRule. The validator walks these
rules generically; anything that is not expressible as type/choice/pattern
is a check function attached to the rule.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from ..types import DisplayType

STRING = (str,)
NUMBER = (int, float)
STRING_OR_NUMBER = (str, int, float)

ACCEPTED_IMAGE_SCHEMES = ("ipfs://", "https://", "data:image/")

KNOWN_GATEWAY_HOSTS = (
    "ipfs.io",
    "cloudflare-ipfs.com",
    "gateway.pinata.cloud",
    "dweb.link",
)

DISPLAY_TYPES = tuple(member.value for member in DisplayType)

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1000


@dataclass
class Findings:
    """Collects errors and warnings; context fills message placeholders"""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    def error(self, template: str, **values: Any) -> None:
        self.errors.append(template.format(**self.context, **values))

    def warn(self, template: str, **values: Any) -> None:
        self.warnings.append(template.format(**self.context, **values))

    def at(self, index: int) -> "Findings":
        """View that shares the lists but reports for one list item"""
        return Findings(self.errors, self.warnings, {**self.context, "index": index})


Check = Callable[[Any, Mapping[str, Any], Findings], None]


@dataclass(frozen=True)
class FieldRule:
    name: str
    types: Optional[Tuple[type, ...]] = None  # None accepts any type
    required: bool = False
    allow_blank: bool = True
    missing: str = ""
    invalid: str = ""
    choices: Optional[Tuple[str, ...]] = None
    choice_error: str = ""
    pattern: Optional[str] = None
    pattern_error: str = ""
    items: Optional[Tuple["FieldRule", ...]] = None
    item_invalid: str = ""
    empty_warning: str = ""
    checks: Tuple[Check, ...] = ()


def check_image_locator(url: str, document: Mapping[str, Any], findings: Findings) -> None:
    if not url.startswith(ACCEPTED_IMAGE_SCHEMES):
        if url.startswith("http://"):
            findings.warn("Image URL uses HTTP instead of HTTPS - not recommended for production")
        else:
            findings.error("Image URL must start with ipfs://, https://, or data:image/")

    if url.startswith(("http://", "https://")):
        try:
            host = (urlparse(url).hostname or "").lower()
        except ValueError:
            findings.error("Image URL is malformed")
            return
        if any(host == known or host.endswith(f".{known}") for known in KNOWN_GATEWAY_HOSTS):
            findings.warn(
                "Consider using ipfs:// protocol instead of gateway URL for better decentralization"
            )


def check_display_type_value(display_type: Any, attribute: Mapping[str, Any],
                             findings: Findings) -> None:
    value = attribute.get("value")
    if display_type and (isinstance(value, bool) or not isinstance(value, NUMBER)):
        findings.warn("Attribute at index {index} has display_type but value is not a number")


def check_name_length(name: str, document: Mapping[str, Any], findings: Findings) -> None:
    if len(name) > MAX_NAME_LENGTH:
        findings.warn(
            f"Name is longer than {MAX_NAME_LENGTH} characters - may be truncated on some platforms"
        )


def check_description_length(description: str, document: Mapping[str, Any],
                             findings: Findings) -> None:
    if len(description) > MAX_DESCRIPTION_LENGTH:
        findings.warn(
            f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters"
            " - may be truncated on some platforms"
        )


REQUIRED_STRING = "Field '{name}' is required and must be a string"
OPTIONAL_STRING = "Field '{name}' must be a string if provided"

ATTRIBUTE_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        "trait_type", STRING, required=True, allow_blank=False,
        missing="Attribute at index {index} must have a 'trait_type' string field",
        invalid="Attribute at index {index} must have a 'trait_type' string field",
    ),
    FieldRule(
        "value", STRING_OR_NUMBER, required=True,
        missing="Attribute at index {index} must have a 'value' field",
        invalid="Attribute at index {index} has invalid value type (must be string or number)",
    ),
    FieldRule(
        "display_type",
        choices=DISPLAY_TYPES,
        choice_error="Attribute at index {index} has invalid display_type: {value}",
        checks=(check_display_type_value,),
    ),
    FieldRule(
        "max_value", NUMBER,
        invalid="Attribute at index {index} has invalid max_value (must be a number)",
    ),
)

METADATA_RULES: Tuple[FieldRule, ...] = (
    FieldRule("name", STRING, required=True, allow_blank=False,
              missing=REQUIRED_STRING, invalid=REQUIRED_STRING),
    FieldRule("description", STRING, required=True, allow_blank=False,
              missing=REQUIRED_STRING, invalid=REQUIRED_STRING),
    FieldRule("image", STRING, required=True, allow_blank=False,
              missing=REQUIRED_STRING, invalid=REQUIRED_STRING,
              checks=(check_image_locator,)),
    FieldRule(
        "attributes", (list, tuple), required=True,
        missing="Field '{name}' is required",
        invalid="Field '{name}' must be an array",
        items=ATTRIBUTE_RULES,
        item_invalid="Attribute at index {index} must be an object",
        empty_warning="Attributes array is empty - NFT will have no traits",
    ),
    FieldRule("animation_url", STRING, invalid=OPTIONAL_STRING),
    FieldRule("external_url", STRING, invalid=OPTIONAL_STRING),
    FieldRule(
        "background_color", STRING, invalid=OPTIONAL_STRING,
        pattern=r"[0-9A-Fa-f]{6}",
        pattern_error="Field '{name}' must be a valid hex color (without #)",
    ),
)

# Warnings evaluated after every field rule, in this order.
DOCUMENT_CHECKS: Tuple[Tuple[str, Check], ...] = (
    ("name", check_name_length),
    ("description", check_description_length),
)
