"""
Core types, enums and the error taxonomy for ticket operations.
"""

from enum import Enum
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ValidationResult


class TicketStatus(Enum):
    """Derived status of a ticket"""
    VALID = "valid"
    CHECKED_IN = "checked-in"
    EXPIRED = "expired"


class StepStatus(Enum):
    """Workflow step states"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"


class DisplayType(str, Enum):
    """Marketplace display hints for numeric attributes"""
    NUMBER = "number"
    BOOST_NUMBER = "boost_number"
    BOOST_PERCENTAGE = "boost_percentage"
    DATE = "date"


class TraitType:
    """Trait names written by the metadata generator"""
    EVENT = "Event"
    SEAT = "Seat"
    SECTION = "Section"
    DATE = "Date"
    STATUS = "Status"
    TICKET_NUMBER = "Ticket Number"
    CATEGORY = "Category"
    VENUE = "Venue"


DEFAULT_TICKET_STATUS = "Valid"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class TicketingError(Exception):
    """Base exception for ticketing operations"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


# Input data

class TicketDataError(TicketingError):
    """Ticket input is incomplete or malformed"""
    pass


class MissingRequiredField(TicketDataError):
    """A required ticket field is absent or empty"""
    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(
            f"Missing required ticket data fields: {', '.join(fields)}",
            error_code="missing_field"
        )


class InvalidFieldValue(TicketDataError):
    """A ticket field is present but cannot be interpreted"""
    pass


class InvalidAddress(TicketDataError):
    """Address is not a usable ledger address"""
    pass


# Metadata

class MalformedJSON(TicketingError):
    """Text is not a parseable metadata document"""
    pass


class SchemaViolation(TicketingError):
    """Metadata failed schema validation"""
    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__(
            f"Metadata failed validation: {'; '.join(result.errors)}",
            error_code="schema_violation"
        )


# Content resolution

class ContentResolutionError(TicketingError):
    """Base for off-ledger content fetch failures"""
    def __init__(self, message: str, gateway: Optional[str] = None,
                 error_code: Optional[str] = None):
        self.gateway = gateway
        super().__init__(message, error_code=error_code)


class GatewayUnavailable(ContentResolutionError):
    """Gateway answered with an error status or could not be reached"""
    pass


class GatewayTimeout(ContentResolutionError):
    """Gateway did not answer within the per-attempt timeout"""
    pass


class InvalidDocument(ContentResolutionError):
    """Gateway answered but the body is not a usable metadata document"""
    pass


class ResolutionFailed(ContentResolutionError):
    """Every gateway attempt failed"""
    def __init__(self, message: str, attempts: Optional[List[ContentResolutionError]] = None):
        self.attempts = attempts or []
        super().__init__(message, error_code="resolution_exhausted")


# Ledger

class LedgerError(TicketingError):
    """Base for ledger collaborator failures"""
    pass


class LedgerReadFailure(LedgerError):
    """A read against the ledger failed"""
    pass


class TransactionRejected(LedgerError):
    """Transaction was refused or reverted"""
    pass


class TransactionTimeout(LedgerError):
    """Transaction submission did not return in time"""
    pass


class ConfirmationTimeout(LedgerError):
    """Transaction was not confirmed in time"""
    pass


# Content store

class PublishFailure(TicketingError):
    """Uploading to the content store failed"""
    pass


# Workflows

class WorkflowError(TicketingError):
    """Base for orchestrator misuse"""
    pass


class WorkflowBusy(WorkflowError):
    """Workflow instance is already running"""
    pass


class IllegalTransition(WorkflowError):
    """Step status change not allowed by the state machine"""
    pass
