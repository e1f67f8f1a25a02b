"""
EVM ledger adapter for the EventTicket contract.
Targets Polygon Amoy by default, works with any EVM chain serving the contract.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from eth_account import Account
from eth_account.signers.local import LocalAccount
from prometheus_client import Counter, Histogram
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD
from web3.middleware import ExtraDataToPOAMiddleware

from ..config import TicketingSettings, get_settings
from ..models import TicketRecord, TransactionReceipt, TransferLog
from ..types import (
    LedgerError, LedgerReadFailure, TransactionRejected, ConfirmationTimeout
)
from ..utils import normalize_address
from .abi import EVENT_TICKET_ABI

logger = logging.getLogger(__name__)

LEDGER_CALLS_TOTAL = Counter(
    'ticket_ledger_calls_total',
    'Calls made against the ticket contract',
    ['method', 'status']
)
LEDGER_CALL_DURATION_SECONDS = Histogram(
    'ticket_ledger_call_duration_seconds',
    'Duration of ticket contract calls in seconds',
    ['method']
)


class EVMTicketLedger:
    """Ledger reader and writer backed by web3.py"""

    def __init__(self, w3: AsyncWeb3, contract_address: str,
                 account: Optional[LocalAccount] = None,
                 abi: Sequence[Dict[str, Any]] = EVENT_TICKET_ABI,
                 confirmation_timeout: float = 300.0,
                 poll_latency: float = 2.0):
        self.w3 = w3
        self.contract_address = normalize_address(contract_address)
        self.account = account
        self.confirmation_timeout = confirmation_timeout
        self.poll_latency = poll_latency
        self.contract = w3.eth.contract(address=self.contract_address, abi=list(abi))

    @classmethod
    def from_settings(cls, settings: Optional[TicketingSettings] = None) -> "EVMTicketLedger":
        """Build an HTTP-connected ledger from configuration"""
        settings = settings or get_settings()
        if not settings.is_contract_configured():
            raise LedgerError("Contract address is not configured", error_code="not_configured")

        w3 = AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
        # Polygon and other POA chains carry extra data in block headers
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        account = None
        if settings.private_key is not None:
            account = Account.from_key(settings.private_key.get_secret_value())

        return cls(
            w3,
            settings.contract_address,
            account=account,
            confirmation_timeout=settings.confirmation_timeout
        )

    async def is_connected(self) -> bool:
        try:
            if await self.w3.is_connected():
                chain_id = await self.w3.eth.chain_id
                logger.info(f"Connected to chain {chain_id}, contract {self.contract_address}")
                return True
            logger.error("Failed to connect to ledger RPC")
            return False
        except Exception as e:
            logger.error(f"Error connecting to ledger RPC: {e}")
            return False

    async def _read(self, method: str, call):
        start_time = time.time()
        try:
            result = await call
        except Exception as e:
            LEDGER_CALLS_TOTAL.labels(method=method, status="failed").inc()
            raise LedgerReadFailure(f"{method} failed: {e}") from e
        LEDGER_CALLS_TOTAL.labels(method=method, status="success").inc()
        LEDGER_CALL_DURATION_SECONDS.labels(method=method).observe(time.time() - start_time)
        return result

    # Reads

    async def get_transfer_logs(self, to_address: str, from_block: int = 0) -> List[TransferLog]:
        """Transfer events whose recipient is to_address"""
        entries = await self._read(
            "get_transfer_logs",
            self.contract.events.Transfer.get_logs(
                argument_filters={"to": normalize_address(to_address)},
                from_block=from_block
            )
        )

        logs = []
        for entry in entries:
            args = entry["args"]
            logs.append(TransferLog(
                token_id=args.get("tokenId"),
                to_address=args.get("to"),
                from_address=args.get("from"),
                block_number=entry.get("blockNumber"),
                transaction_hash=Web3.to_hex(entry["transactionHash"]) if entry.get("transactionHash") else None
            ))
        return logs

    async def owner_of(self, token_id: int) -> str:
        return await self._read("owner_of", self.contract.functions.ownerOf(token_id).call())

    async def get_ticket_record(self, token_id: int) -> TicketRecord:
        info, uri, owner = await self._read(
            "get_ticket_record",
            self.contract.functions.getCompleteTicketInfo(token_id).call()
        )
        event_id, seat, sector, event_date, checked_in = info
        return TicketRecord(
            event_id=event_id,
            seat=seat,
            sector=sector,
            event_date=event_date,
            checked_in=checked_in,
            content_locator=uri,
            owner=owner
        )

    # Writes

    async def mint(self, recipient: str, event_id: int, seat: str, sector: str,
                   event_date: int, content_locator: str) -> str:
        function = self.contract.functions.mintTicket(
            normalize_address(recipient), event_id, seat, sector, event_date, content_locator
        )
        return await self._build_and_send_transaction("mint", function)

    async def transfer(self, from_address: str, to_address: str, token_id: int) -> str:
        function = self.contract.functions.safeTransferFrom(
            normalize_address(from_address), normalize_address(to_address), token_id
        )
        return await self._build_and_send_transaction("transfer", function)

    async def _build_and_send_transaction(self, method: str, function) -> str:
        """Build, sign and send a transaction, returning its hash"""
        if self.account is None:
            raise TransactionRejected("No signing account configured", error_code="no_account")

        try:
            nonce = await self.w3.eth.get_transaction_count(self.account.address)
            tx = await function.build_transaction({
                'from': self.account.address,
                'nonce': nonce,
            })
            signed_tx = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except ContractLogicError as e:
            LEDGER_CALLS_TOTAL.labels(method=method, status="reverted").inc()
            raise TransactionRejected(f"{method} reverted: {e}", error_code="reverted") from e
        except (Web3Exception, ValueError) as e:
            LEDGER_CALLS_TOTAL.labels(method=method, status="failed").inc()
            raise TransactionRejected(f"{method} failed: {e}") from e

        LEDGER_CALLS_TOTAL.labels(method=method, status="submitted").inc()
        tx_hash = Web3.to_hex(tx_hash)
        logger.info(f"Submitted {method} transaction {tx_hash}")
        return tx_hash

    async def await_confirmation(self, transaction_hash: str) -> TransactionReceipt:
        """Wait for the receipt; the token id is taken from the Transfer event if present"""
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                transaction_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"Transaction {transaction_hash} not confirmed after {self.confirmation_timeout}s"
            ) from e
        except Web3Exception as e:
            raise LedgerReadFailure(f"Failed to fetch receipt for {transaction_hash}: {e}") from e

        token_id = None
        transfers = self.contract.events.Transfer().process_receipt(receipt, errors=DISCARD)
        if transfers:
            token_id = transfers[-1]["args"]["tokenId"]

        success = receipt["status"] == 1
        logger.info(
            f"Transaction {transaction_hash} {'confirmed' if success else 'reverted'} "
            f"in block {receipt['blockNumber']}"
        )
        return TransactionReceipt(
            transaction_hash=transaction_hash,
            block_number=receipt["blockNumber"],
            success=success,
            token_id=token_id,
            gas_used=receipt.get("gasUsed")
        )
