"""
Step-tracked workflows for ticket issuance and transfer.

Each workflow is a strict linear state machine over its step list. Steps
move pending -> in-progress -> completed | error, one at a time. The first
failing step ends the run; later steps stay pending and nothing is retried.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, TypeVar

from prometheus_client import Counter, Histogram

from .interfaces import ILedgerWriter, IContentPublisher, ITicketRenderer
from .metadata import check_required_fields, generate_metadata, validate_metadata
from .models import (
    TicketFields, TransactionReceipt, WorkflowResult, WorkflowStep, MetadataDocument
)
from .types import (
    StepStatus, IllegalTransition, WorkflowBusy, SchemaViolation, MissingRequiredField,
    InvalidAddress, InvalidFieldValue, TransactionRejected, TransactionTimeout,
    ConfirmationTimeout
)
from .utils import (
    generate_event_id, is_zero_address, normalize_address, same_address, to_unix_timestamp
)

logger = logging.getLogger(__name__)

WORKFLOW_RUNS_TOTAL = Counter(
    'ticket_workflow_runs_total',
    'Workflow runs by outcome',
    ['workflow', 'outcome']
)
WORKFLOW_DURATION_SECONDS = Histogram(
    'ticket_workflow_duration_seconds',
    'Duration of workflow runs in seconds',
    ['workflow']
)

T = TypeVar("T")

StepListener = Callable[[WorkflowStep], None]

_ALLOWED_TRANSITIONS: Dict[StepStatus, Set[StepStatus]] = {
    StepStatus.PENDING: {StepStatus.IN_PROGRESS},
    StepStatus.IN_PROGRESS: {StepStatus.COMPLETED, StepStatus.ERROR},
    StepStatus.COMPLETED: set(),
    StepStatus.ERROR: set(),
}


@dataclass(frozen=True)
class StepDefinition:
    """Static description of one workflow step"""
    id: str
    title: str
    running_message: str
    action: Callable[[Any], Awaitable[str]]


class WorkflowOrchestrator:
    """
    Runs a fixed sequence of dependent async steps with observable status.

    One run at a time per instance: a second run while the first is in
    flight raises WorkflowBusy.
    """

    workflow_name = "workflow"

    def __init__(self, definitions: Sequence[StepDefinition]):
        self._definitions = tuple(definitions)
        self._steps: List[WorkflowStep] = []
        self._current: Optional[int] = None
        self._listeners: List[StepListener] = []
        self._lock = asyncio.Lock()
        self.result: Optional[WorkflowResult] = None

    @property
    def steps(self) -> List[WorkflowStep]:
        """Snapshot of the step list"""
        return [step.snapshot() for step in self._steps]

    @property
    def current_step(self) -> Optional[WorkflowStep]:
        if self._current is None:
            return None
        return self._steps[self._current].snapshot()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def add_listener(self, listener: StepListener) -> None:
        """Register a callback that receives a copy of each step as it changes"""
        self._listeners.append(listener)

    def remove_listener(self, listener: StepListener) -> None:
        self._listeners.remove(listener)

    def reset(self) -> None:
        """Forget the previous run"""
        if self.is_running:
            raise WorkflowBusy(f"{self.workflow_name} is running and cannot be reset")
        self._steps = []
        self._current = None
        self.result = None

    def _initialize_steps(self) -> None:
        self._steps = [WorkflowStep(id=d.id, title=d.title) for d in self._definitions]
        self._current = None
        self.result = None

    def _transition(self, index: int, status: StepStatus, message: Optional[str] = None) -> None:
        step = self._steps[index]

        if status not in _ALLOWED_TRANSITIONS[step.status]:
            raise IllegalTransition(
                f"Step '{step.id}' cannot move from {step.status.value} to {status.value}"
            )

        if status is StepStatus.IN_PROGRESS:
            if self._current is not None:
                raise IllegalTransition(
                    f"Step '{self._steps[self._current].id}' is still in progress"
                )
            if index > 0 and self._steps[index - 1].status is not StepStatus.COMPLETED:
                raise IllegalTransition(
                    f"Step '{step.id}' cannot start before '{self._steps[index - 1].id}' completes"
                )
            self._current = index
        else:
            self._current = None

        step.status = status
        step.message = message
        self._emit(step)

    def _emit(self, step: WorkflowStep) -> None:
        for listener in list(self._listeners):
            try:
                listener(step.snapshot())
            except Exception as e:
                logger.error(f"Error in step listener for {step.id}: {e}")

    def _build_result(self, context: Any, success: bool) -> WorkflowResult:
        return WorkflowResult(success=success)

    async def _execute(self, context: Any) -> WorkflowResult:
        if self._lock.locked():
            raise WorkflowBusy(f"{self.workflow_name} is already running")

        async with self._lock:
            self._initialize_steps()
            started = time.monotonic()
            logger.info(f"Starting {self.workflow_name} workflow")

            for index, definition in enumerate(self._definitions):
                self._transition(index, StepStatus.IN_PROGRESS, definition.running_message)
                try:
                    message = await definition.action(context)
                except Exception as e:
                    error_message = str(e) or type(e).__name__
                    self._transition(index, StepStatus.ERROR, error_message)
                    logger.error(f"{self.workflow_name} failed at step '{definition.id}': {error_message}")

                    result = self._build_result(context, success=False)
                    result.error = error_message
                    result.failed_step = definition.id
                    self._finish(result, "failed", started)
                    return result

                self._transition(index, StepStatus.COMPLETED, message)

            result = self._build_result(context, success=True)
            self._finish(result, "success", started)
            logger.info(f"{self.workflow_name} workflow completed")
            return result

    def _finish(self, result: WorkflowResult, outcome: str, started: float) -> None:
        self.result = result
        WORKFLOW_RUNS_TOTAL.labels(workflow=self.workflow_name, outcome=outcome).inc()
        WORKFLOW_DURATION_SECONDS.labels(workflow=self.workflow_name).observe(
            time.monotonic() - started
        )


async def _bounded(awaitable: Awaitable[T], timeout: Optional[float],
                   error: Callable[[str], Exception], description: str) -> T:
    """Await with a deadline, mapping expiry to a ledger error"""
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise error(f"{description} timed out after {timeout}s") from e


def _checked_recipient(recipient: str) -> str:
    address = normalize_address(recipient)
    if is_zero_address(address):
        raise InvalidAddress("Recipient cannot be the zero address")
    return address


def _require_success(receipt: TransactionReceipt) -> TransactionReceipt:
    if not receipt.success:
        raise TransactionRejected(f"Transaction {receipt.transaction_hash} was reverted")
    return receipt


@dataclass
class IssuanceContext:
    recipient: str
    fields: TicketFields
    event_id: Optional[int] = None
    event_date: Optional[int] = None
    artwork: Optional[bytes] = None
    image_locator: Optional[str] = None
    metadata: Optional[MetadataDocument] = None
    metadata_locator: Optional[str] = None
    transaction_hash: Optional[str] = None
    receipt: Optional[TransactionReceipt] = None


class IssuanceWorkflow(WorkflowOrchestrator):
    """validate -> generate-artifact -> publish-to-store -> submit-transaction -> await-confirmation"""

    workflow_name = "issuance"

    def __init__(self, ledger: ILedgerWriter, publisher: IContentPublisher,
                 renderer: Optional[ITicketRenderer] = None,
                 transaction_timeout: Optional[float] = 120.0,
                 confirmation_timeout: Optional[float] = 300.0):
        self.ledger = ledger
        self.publisher = publisher
        self.renderer = renderer
        self.transaction_timeout = transaction_timeout
        self.confirmation_timeout = confirmation_timeout
        super().__init__([
            StepDefinition("validate", "Validating ticket data",
                           "Validating data...", self._validate),
            StepDefinition("generate-artifact", "Generating ticket artwork",
                           "Generating artwork...", self._generate_artifact),
            StepDefinition("publish-to-store", "Uploading to IPFS",
                           "Uploading to IPFS...", self._publish),
            StepDefinition("submit-transaction", "Minting ticket on the ledger",
                           "Submitting transaction...", self._submit),
            StepDefinition("await-confirmation", "Awaiting confirmation",
                           "Waiting for confirmation...", self._confirm),
        ])

    async def run(self, recipient: str, fields: Any,
                  event_id: Optional[int] = None) -> WorkflowResult:
        """Issue one ticket to recipient. fields is TicketFields or a mapping."""
        if not isinstance(fields, TicketFields):
            fields = TicketFields.from_mapping(dict(fields))
        return await self._execute(IssuanceContext(recipient=recipient, fields=fields,
                                                   event_id=event_id))

    def _build_result(self, context: IssuanceContext, success: bool) -> WorkflowResult:
        return WorkflowResult(
            success=success,
            transaction_hash=context.transaction_hash,
            token_id=context.receipt.token_id if context.receipt else None,
            metadata_locator=context.metadata_locator,
            image_locator=context.image_locator
        )

    async def _validate(self, context: IssuanceContext) -> str:
        context.recipient = _checked_recipient(context.recipient)

        # The image locator is produced later when artwork is rendered here
        required = replace(context.fields, content_locator=context.fields.content_locator or "pending")
        check_required_fields(required)

        context.event_date = to_unix_timestamp(context.fields.date)
        if context.event_id is None:
            context.event_id = generate_event_id()
        elif context.event_id < 0:
            raise InvalidFieldValue(f"Invalid event id: {context.event_id}")

        if not context.fields.content_locator and self.renderer is None:
            raise MissingRequiredField(["content_locator"])

        return "Data validated"

    async def _generate_artifact(self, context: IssuanceContext) -> str:
        if context.fields.content_locator:
            context.image_locator = context.fields.content_locator
            return f"Using provided artwork {context.image_locator}"

        context.artwork = await self.renderer.render(context.fields, context.event_id)
        if not context.artwork:
            raise ValueError("Renderer produced empty artwork")
        return f"Artwork generated ({len(context.artwork)} bytes)"

    async def _publish(self, context: IssuanceContext) -> str:
        name = f"ticket-{context.event_id}"

        if context.artwork is not None:
            image = await self.publisher.publish_binary(
                context.artwork, f"{name}-{self.renderer.filename}"
            )
            context.image_locator = image.locator

        context.metadata = generate_metadata(
            replace(context.fields, content_locator=context.image_locator)
        )

        validation = validate_metadata(context.metadata)
        if not validation.valid:
            raise SchemaViolation(validation)
        for warning in validation.warnings:
            logger.warning(f"Metadata for {name}: {warning}")

        published = await self.publisher.publish_json(context.metadata, f"{name}-metadata")
        context.metadata_locator = published.locator
        return f"Upload complete! CID: {published.cid[:8]}..."

    async def _submit(self, context: IssuanceContext) -> str:
        context.transaction_hash = await _bounded(
            self.ledger.mint(
                context.recipient,
                context.event_id,
                context.fields.seat,
                context.fields.section,
                context.event_date,
                context.metadata_locator
            ),
            self.transaction_timeout, TransactionTimeout, "Mint submission"
        )
        return f"Transaction submitted: {context.transaction_hash}"

    async def _confirm(self, context: IssuanceContext) -> str:
        receipt = await _bounded(
            self.ledger.await_confirmation(context.transaction_hash),
            self.confirmation_timeout, ConfirmationTimeout, "Confirmation"
        )
        context.receipt = _require_success(receipt)
        if receipt.token_id is not None:
            return f"Ticket #{receipt.token_id} minted in block {receipt.block_number}"
        return f"Confirmed in block {receipt.block_number}"


@dataclass
class TransferContext:
    token_id: int
    recipient: str
    transaction_hash: Optional[str] = None
    receipt: Optional[TransactionReceipt] = None


class TransferWorkflow(WorkflowOrchestrator):
    """validate -> submit-transaction -> await-confirmation"""

    workflow_name = "transfer"

    def __init__(self, ledger: ILedgerWriter, sender: str,
                 transaction_timeout: Optional[float] = 120.0,
                 confirmation_timeout: Optional[float] = 300.0):
        self.ledger = ledger
        self.sender = sender
        self.transaction_timeout = transaction_timeout
        self.confirmation_timeout = confirmation_timeout
        super().__init__([
            StepDefinition("validate", "Validating transfer",
                           "Validating address...", self._validate),
            StepDefinition("submit-transaction", "Executing transfer",
                           "Submitting transfer...", self._submit),
            StepDefinition("await-confirmation", "Awaiting confirmation",
                           "Waiting for confirmation...", self._confirm),
        ])

    async def run(self, token_id: int, recipient: str) -> WorkflowResult:
        """Transfer token_id from the configured sender to recipient"""
        return await self._execute(TransferContext(token_id=token_id, recipient=recipient))

    def _build_result(self, context: TransferContext, success: bool) -> WorkflowResult:
        return WorkflowResult(
            success=success,
            transaction_hash=context.transaction_hash,
            token_id=context.token_id
        )

    async def _validate(self, context: TransferContext) -> str:
        if not self.sender:
            raise InvalidAddress("Wallet not connected")
        sender = normalize_address(self.sender)
        context.recipient = _checked_recipient(context.recipient)

        if same_address(sender, context.recipient):
            raise InvalidAddress("Recipient must differ from the current owner")
        if isinstance(context.token_id, bool) or not isinstance(context.token_id, int) \
                or context.token_id < 0:
            raise InvalidFieldValue(f"Invalid token id: {context.token_id!r}")

        self.sender = sender
        return "Address validated"

    async def _submit(self, context: TransferContext) -> str:
        context.transaction_hash = await _bounded(
            self.ledger.transfer(self.sender, context.recipient, context.token_id),
            self.transaction_timeout, TransactionTimeout, "Transfer submission"
        )
        return f"Transaction submitted: {context.transaction_hash}"

    async def _confirm(self, context: TransferContext) -> str:
        receipt = await _bounded(
            self.ledger.await_confirmation(context.transaction_hash),
            self.confirmation_timeout, ConfirmationTimeout, "Confirmation"
        )
        context.receipt = _require_success(receipt)
        return f"Ticket #{context.token_id} transferred in block {receipt.block_number}"
