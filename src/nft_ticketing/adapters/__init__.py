"""
Concrete ledger and content-store collaborators.
"""

from .abi import EVENT_TICKET_ABI
from .evm import EVMTicketLedger
from .pinata import PinataPublisher

__all__ = [
    "EVENT_TICKET_ABI",
    "EVMTicketLedger",
    "PinataPublisher",
]
