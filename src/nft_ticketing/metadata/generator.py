"""
Metadata generation and JSON serialization for ticket documents.
"""

import json
from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError

from ..models import Attribute, MetadataDocument, TicketFields
from ..types import (
    DisplayType, TraitType, MissingRequiredField, MalformedJSON, DEFAULT_TICKET_STATUS
)
from ..utils import to_unix_timestamp, format_day_month_year

REQUIRED_FIELDS = ("event_name", "seat", "section", "date", "content_locator")


def _coerce_fields(fields: Union[TicketFields, Mapping[str, Any]]) -> TicketFields:
    if isinstance(fields, TicketFields):
        return fields
    return TicketFields.from_mapping(dict(fields))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def check_required_fields(fields: Union[TicketFields, Mapping[str, Any]]) -> TicketFields:
    """Raise MissingRequiredField naming every absent or empty required field"""
    fields = _coerce_fields(fields)
    missing = [name for name in REQUIRED_FIELDS if _is_blank(getattr(fields, name))]
    if missing:
        raise MissingRequiredField(missing)
    return fields


def generate_attributes(fields: Union[TicketFields, Mapping[str, Any]]) -> List[Attribute]:
    """Build the trait list in its fixed presentation order"""
    fields = _coerce_fields(fields)
    event_timestamp = to_unix_timestamp(fields.date)

    attributes = [
        Attribute(trait_type=TraitType.EVENT, value=fields.event_name),
        Attribute(trait_type=TraitType.SEAT, value=fields.seat),
        Attribute(trait_type=TraitType.SECTION, value=fields.section),
        Attribute(trait_type=TraitType.DATE, value=event_timestamp,
                  display_type=DisplayType.DATE),
        Attribute(trait_type=TraitType.STATUS, value=fields.status or DEFAULT_TICKET_STATUS),
    ]

    if fields.ticket_number is not None:
        attributes.append(Attribute(
            trait_type=TraitType.TICKET_NUMBER,
            value=fields.ticket_number,
            display_type=DisplayType.NUMBER
        ))

    if fields.category:
        attributes.append(Attribute(trait_type=TraitType.CATEGORY, value=fields.category))

    if fields.venue:
        attributes.append(Attribute(trait_type=TraitType.VENUE, value=fields.venue))

    return attributes


def generate_metadata(fields: Union[TicketFields, Mapping[str, Any]]) -> MetadataDocument:
    """Generate a standard metadata document from ticket fields"""
    fields = check_required_fields(fields)

    attributes = generate_attributes(fields)
    event_timestamp = to_unix_timestamp(fields.date)

    name = f"NFT Ticket - {fields.event_name} - Seat {fields.seat}"

    description = fields.description or (
        f"Blockchain-verified NFT ticket for {fields.event_name}. "
        f"Seat {fields.seat}, Section {fields.section}. "
        f"Event date: {format_day_month_year(event_timestamp)}."
    )

    document = MetadataDocument(
        name=name,
        description=description,
        image=fields.content_locator,
        attributes=attributes
    )

    if fields.external_url:
        document.external_url = fields.external_url

    return document


def metadata_to_json(metadata: Union[MetadataDocument, Dict[str, Any]], pretty: bool = True) -> str:
    """Serialize a metadata document; None-valued optional fields are omitted"""
    data = metadata.to_dict() if isinstance(metadata, MetadataDocument) else metadata
    return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False,
                      separators=None if pretty else (",", ":"))


def parse_metadata(text: Union[str, bytes]) -> MetadataDocument:
    """Parse JSON text into a metadata document"""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedJSON(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedJSON("Invalid JSON: metadata must be a JSON object")

    try:
        return MetadataDocument.model_validate(data)
    except ValidationError as e:
        raise MalformedJSON(f"Invalid metadata document: {e}") from e
