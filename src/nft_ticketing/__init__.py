"""
NFT Ticketing Library

Ownership reconciliation, metadata resolution and issuance/transfer workflows
for event tickets held as ERC-721 tokens.
"""

from .types import (
    TicketStatus,
    StepStatus,
    DisplayType,
    TicketingError,
    TicketDataError,
    MissingRequiredField,
    InvalidFieldValue,
    InvalidAddress,
    MalformedJSON,
    SchemaViolation,
    ContentResolutionError,
    ResolutionFailed,
    LedgerError,
    LedgerReadFailure,
    TransactionRejected,
    TransactionTimeout,
    ConfirmationTimeout,
    PublishFailure,
    WorkflowError,
    WorkflowBusy,
    IllegalTransition
)

from .interfaces import (
    ILedgerReader,
    ILedgerWriter,
    IContentPublisher,
    ITicketRenderer
)

from .models import (
    Attribute,
    MetadataDocument,
    TicketFields,
    TransferLog,
    TicketRecord,
    Ticket,
    ValidationResult,
    PublishResult,
    TransactionReceipt,
    WorkflowStep,
    WorkflowResult,
    ticket_status
)

from .metadata import (
    generate_metadata,
    validate_metadata,
    validate_metadata_json,
    metadata_to_json,
    parse_metadata
)

from .config import TicketingSettings, get_settings
from .resolver import ContentResolver
from .reconciler import OwnershipReconciler
from .workflow import WorkflowOrchestrator, IssuanceWorkflow, TransferWorkflow

__all__ = [
    # Types
    "TicketStatus",
    "StepStatus",
    "DisplayType",

    # Errors
    "TicketingError",
    "TicketDataError",
    "MissingRequiredField",
    "InvalidFieldValue",
    "InvalidAddress",
    "MalformedJSON",
    "SchemaViolation",
    "ContentResolutionError",
    "ResolutionFailed",
    "LedgerError",
    "LedgerReadFailure",
    "TransactionRejected",
    "TransactionTimeout",
    "ConfirmationTimeout",
    "PublishFailure",
    "WorkflowError",
    "WorkflowBusy",
    "IllegalTransition",

    # Interfaces
    "ILedgerReader",
    "ILedgerWriter",
    "IContentPublisher",
    "ITicketRenderer",

    # Models
    "Attribute",
    "MetadataDocument",
    "TicketFields",
    "TransferLog",
    "TicketRecord",
    "Ticket",
    "ValidationResult",
    "PublishResult",
    "TransactionReceipt",
    "WorkflowStep",
    "WorkflowResult",
    "ticket_status",

    # Metadata
    "generate_metadata",
    "validate_metadata",
    "validate_metadata_json",
    "metadata_to_json",
    "parse_metadata",

    # Services
    "TicketingSettings",
    "get_settings",
    "ContentResolver",
    "OwnershipReconciler",
    "WorkflowOrchestrator",
    "IssuanceWorkflow",
    "TransferWorkflow"
]

__version__ = "1.0.0"
