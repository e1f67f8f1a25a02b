"""
Interfaces (protocols) for the collaborators the core depends on.
Using Python's Protocol for structural subtyping.
"""

from typing import Protocol, List, Dict, Any, Union
from abc import abstractmethod

from .models import (
    TransferLog, TicketRecord, TransactionReceipt, PublishResult,
    MetadataDocument, TicketFields
)


class ILedgerReader(Protocol):
    """Read access to the ticket contract"""

    @abstractmethod
    async def get_transfer_logs(self, to_address: str, from_block: int) -> List[TransferLog]:
        """Get Transfer events whose destination is to_address"""
        ...

    @abstractmethod
    async def owner_of(self, token_id: int) -> str:
        """Get the current owner of a token"""
        ...

    @abstractmethod
    async def get_ticket_record(self, token_id: int) -> TicketRecord:
        """Get the full on-ledger record and content locator of a token"""
        ...


class ILedgerWriter(Protocol):
    """Write access to the ticket contract"""

    @abstractmethod
    async def mint(self, recipient: str, event_id: int, seat: str, sector: str,
                   event_date: int, content_locator: str) -> str:
        """Submit a mint and return the transaction hash"""
        ...

    @abstractmethod
    async def transfer(self, from_address: str, to_address: str, token_id: int) -> str:
        """Submit a transfer and return the transaction hash"""
        ...

    @abstractmethod
    async def await_confirmation(self, transaction_hash: str) -> TransactionReceipt:
        """Wait until the transaction is mined"""
        ...


class IContentPublisher(Protocol):
    """Upload access to the content-addressed store"""

    @abstractmethod
    async def publish_binary(self, data: bytes, name: str) -> PublishResult:
        """Pin raw bytes"""
        ...

    @abstractmethod
    async def publish_json(self, document: Union[MetadataDocument, Dict[str, Any]],
                           name: str) -> PublishResult:
        """Pin a JSON document"""
        ...


class ITicketRenderer(Protocol):
    """Produces ticket artwork for issuance"""

    @property
    @abstractmethod
    def filename(self) -> str:
        """File name used when publishing the artwork"""
        ...

    @abstractmethod
    async def render(self, fields: TicketFields, event_id: int) -> bytes:
        """Render artwork bytes for a ticket"""
        ...
