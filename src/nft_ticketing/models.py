"""
Data models for tickets, metadata documents and workflow bookkeeping.
"""

import time
from typing import Optional, Dict, Any, List, Union
from dataclasses import dataclass, field, replace

from pydantic import BaseModel, ConfigDict, Field

from .types import TicketStatus, StepStatus, DisplayType


class Attribute(BaseModel):
    """Single metadata trait. Order within a document is presentation order."""
    model_config = ConfigDict(extra="allow")

    trait_type: str
    value: Union[int, float, str]
    # Unknown display types are kept so the validator can report them
    display_type: Optional[Union[DisplayType, str]] = None
    max_value: Optional[Union[int, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_unset(self.model_dump(mode="json"), ("display_type", "max_value"))


class MetadataDocument(BaseModel):
    """ERC-721 style metadata document stored off-ledger"""
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = ""
    image: str
    attributes: List[Attribute] = Field(default_factory=list)
    external_url: Optional[str] = None
    animation_url: Optional[str] = None
    background_color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-ready wire shape"""
        data = self.model_dump(mode="json", exclude={"attributes"})
        data = _drop_unset(data, ("external_url", "animation_url", "background_color"))
        attributes = self.attributes
        if isinstance(attributes, list):
            attributes = [
                attribute.to_dict() if isinstance(attribute, Attribute) else attribute
                for attribute in attributes
            ]
        data["attributes"] = attributes
        return data


def _drop_unset(data: Dict[str, Any], optional_fields) -> Dict[str, Any]:
    """Omit declared optional fields left as None; extra keys keep their nulls"""
    return {
        key: value for key, value in data.items()
        if not (key in optional_fields and value is None)
    }


@dataclass
class TicketFields:
    """Input for metadata generation and issuance"""
    event_name: Optional[str] = None
    seat: Optional[str] = None
    section: Optional[str] = None
    date: Optional[Any] = None  # ISO date string, datetime, date or Unix timestamp
    content_locator: Optional[str] = None
    description: Optional[str] = None
    ticket_number: Optional[int] = None
    category: Optional[str] = None
    status: Optional[str] = None
    venue: Optional[str] = None
    external_url: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "TicketFields":
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass(frozen=True)
class TransferLog:
    """Transfer event as read from the ledger log"""
    token_id: Optional[int]
    to_address: str
    from_address: Optional[str] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class TicketRecord:
    """On-ledger ticket record"""
    event_id: int
    seat: str
    sector: str
    event_date: int
    checked_in: bool
    content_locator: str
    owner: str


@dataclass(frozen=True)
class Ticket:
    """Reconciled ticket owned by an address"""
    token_id: int
    owner: str
    content_locator: str
    event_id: int
    seat: str
    sector: str
    event_date: int
    checked_in: bool
    metadata: Optional[MetadataDocument] = None

    @property
    def status(self) -> TicketStatus:
        return ticket_status(self)


def ticket_status(ticket: Ticket, now: Optional[int] = None) -> TicketStatus:
    """Checked-in wins over an elapsed event date."""
    if now is None:
        now = int(time.time())

    if ticket.checked_in:
        return TicketStatus.CHECKED_IN
    elif ticket.event_date < now:
        return TicketStatus.EXPIRED
    else:
        return TicketStatus.VALID


@dataclass
class ValidationResult:
    """Outcome of metadata validation"""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PublishResult:
    """Content-store upload receipt"""
    cid: str
    locator: str
    gateway_url: str


@dataclass(frozen=True)
class TransactionReceipt:
    """Confirmed ledger transaction"""
    transaction_hash: str
    block_number: int
    success: bool
    token_id: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass
class WorkflowStep:
    """One observable unit of a workflow"""
    id: str
    title: str
    status: StepStatus = StepStatus.PENDING
    message: Optional[str] = None

    def snapshot(self) -> "WorkflowStep":
        return replace(self)


@dataclass
class WorkflowResult:
    """Aggregate result of a workflow run"""
    success: bool
    transaction_hash: Optional[str] = None
    token_id: Optional[int] = None
    metadata_locator: Optional[str] = None
    image_locator: Optional[str] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None


@dataclass(frozen=True)
class TicketUpload:
    """Image and metadata receipts for one published ticket"""
    image: PublishResult
    metadata: PublishResult
