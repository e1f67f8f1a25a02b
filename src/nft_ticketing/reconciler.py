"""
Ownership reconciliation.

Derives the tickets an address currently holds from the ledger's Transfer
log plus live ownership reads, then attaches resolved metadata.
"""

import asyncio
import logging
from typing import List, Optional, Iterable

from prometheus_client import Counter

from .interfaces import ILedgerReader
from .models import Ticket, TransferLog
from .resolver import ContentResolver
from .types import LedgerReadFailure
from .utils import normalize_address, same_address

logger = logging.getLogger(__name__)

RECONCILIATIONS_TOTAL = Counter(
    'ticket_reconciliations_total',
    'Ownership reconciliation runs',
    ['outcome']
)
TICKETS_RETURNED_TOTAL = Counter(
    'ticket_reconciliation_tickets_returned_total',
    'Tickets returned by reconciliation runs'
)
CANDIDATES_DROPPED_TOTAL = Counter(
    'ticket_reconciliation_candidates_dropped_total',
    'Candidate tokens excluded from a reconciliation result',
    ['reason']
)


def candidate_token_ids(logs: Iterable[TransferLog]) -> List[int]:
    """Unique token ids in first-seen order, ignoring entries without an id"""
    seen = dict.fromkeys(log.token_id for log in logs if log.token_id is not None)
    return list(seen)


class OwnershipReconciler:
    """Builds the verified ticket list for an owner"""

    def __init__(self, ledger: ILedgerReader, resolver: ContentResolver,
                 deployment_block: int = 0):
        self.ledger = ledger
        self.resolver = resolver
        self.deployment_block = deployment_block

    async def reconcile(self, owner_address: str) -> List[Ticket]:
        """
        Return the tickets currently owned by owner_address, newest first.

        Only a failure of the log query is raised. Failures for individual
        tokens drop that token from the result.
        """
        owner = normalize_address(owner_address)

        try:
            logs = await self.ledger.get_transfer_logs(owner, self.deployment_block)
        except LedgerReadFailure:
            RECONCILIATIONS_TOTAL.labels(outcome="failed").inc()
            raise
        except Exception as e:
            RECONCILIATIONS_TOTAL.labels(outcome="failed").inc()
            raise LedgerReadFailure(f"Failed to query transfer logs for {owner}: {e}") from e

        token_ids = candidate_token_ids(logs)
        logger.info(f"Found {len(logs)} transfer log(s), {len(token_ids)} candidate token(s) for {owner}")

        if not token_ids:
            RECONCILIATIONS_TOTAL.labels(outcome="empty").inc()
            return []

        results = await asyncio.gather(*(self._load_ticket(owner, token_id) for token_id in token_ids))

        tickets = [ticket for ticket in results if ticket is not None]
        tickets.sort(key=lambda ticket: ticket.token_id, reverse=True)

        RECONCILIATIONS_TOTAL.labels(outcome="success").inc()
        TICKETS_RETURNED_TOTAL.inc(len(tickets))
        logger.info(f"Reconciled {len(tickets)} ticket(s) for {owner}")
        return tickets

    async def _load_ticket(self, owner: str, token_id: int) -> Optional[Ticket]:
        try:
            current_owner = await self.ledger.owner_of(token_id)
            if not same_address(current_owner, owner):
                CANDIDATES_DROPPED_TOTAL.labels(reason="transferred").inc()
                logger.debug(f"Token {token_id} now belongs to {current_owner}, skipping")
                return None

            record = await self.ledger.get_ticket_record(token_id)
            metadata = await self.resolver.resolve_or_placeholder(record.content_locator, token_id)
        except Exception as e:
            CANDIDATES_DROPPED_TOTAL.labels(reason="read_error").inc()
            logger.warning(f"Error fetching ticket {token_id}: {e}")
            return None

        return Ticket(
            token_id=token_id,
            owner=record.owner,
            content_locator=record.content_locator,
            event_id=record.event_id,
            seat=record.seat,
            sector=record.sector,
            event_date=record.event_date,
            checked_in=record.checked_in,
            metadata=metadata
        )
