import asyncio
import json

import click

from ...adapters import EVMTicketLedger, PinataPublisher
from ...models import Ticket, TicketFields, WorkflowResult, WorkflowStep
from ...reconciler import OwnershipReconciler
from ...resolver import ContentResolver
from ...types import StepStatus, TicketingError
from ...utils import format_address, format_event_datetime, format_token_id, truncate
from ...workflow import IssuanceWorkflow, TransferWorkflow

STEP_MARKERS = {
    StepStatus.PENDING: " ",
    StepStatus.IN_PROGRESS: "~",
    StepStatus.COMPLETED: "x",
    StepStatus.ERROR: "!",
}


def get_ledger(ctx):
    """Ledger from the context, built from settings on first use."""
    if "ledger" not in ctx.obj:
        try:
            ctx.obj["ledger"] = EVMTicketLedger.from_settings(ctx.obj["settings"])
        except TicketingError as e:
            raise click.ClickException(str(e))
    return ctx.obj["ledger"]


def get_resolver(ctx):
    if "resolver" not in ctx.obj:
        ctx.obj["resolver"] = ContentResolver.from_settings(ctx.obj["settings"])
    return ctx.obj["resolver"]


def get_publisher(ctx):
    if "publisher" not in ctx.obj:
        ctx.obj["publisher"] = PinataPublisher.from_settings(ctx.obj["settings"])
    return ctx.obj["publisher"]


def get_sender(ctx, ledger):
    sender = ctx.obj.get("sender")
    if sender is None and getattr(ledger, "account", None) is not None:
        sender = ledger.account.address
    return sender


def echo_step(step: WorkflowStep):
    line = f"[{STEP_MARKERS[step.status]}] {step.title}"
    if step.message:
        line = f"{line}: {step.message}"
    click.echo(line)


def echo_result(result: WorkflowResult):
    if not result.success:
        raise click.ClickException(f"Failed at step '{result.failed_step}': {result.error}")
    if result.transaction_hash:
        click.echo(f"Transaction: {result.transaction_hash}")
    if result.token_id is not None:
        click.echo(f"Token: {format_token_id(result.token_id)}")
    if result.metadata_locator:
        click.echo(f"Metadata: {result.metadata_locator}")


def describe_ticket(ticket: Ticket) -> str:
    name = ticket.metadata.name if ticket.metadata else ""
    return (
        f"{format_token_id(ticket.token_id)}  {truncate(name, 40)}  "
        f"Seat {ticket.seat} / {ticket.sector}  "
        f"{format_event_datetime(ticket.event_date)}  [{ticket.status.value}]"
    )


@click.group("tickets")
@click.pass_context
def tickets_cli(ctx):
    """Commands for tickets held on the ledger."""
    ctx.ensure_object(dict)


@tickets_cli.command("list")
@click.argument("address")
@click.option("--json", "as_json", is_flag=True, help="Print tickets as JSON.")
@click.pass_context
def list_tickets(ctx, address: str, as_json: bool):
    """Lists the tickets currently owned by ADDRESS."""
    ledger = get_ledger(ctx)
    settings = ctx.obj["settings"]

    async def run():
        async with get_resolver(ctx) as resolver:
            reconciler = OwnershipReconciler(ledger, resolver, settings.deployment_block)
            return await reconciler.reconcile(address)

    if not as_json:
        click.echo(f"Fetching tickets for {format_address(address)}...")
    try:
        tickets = asyncio.run(run())
    except TicketingError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps([
            {
                "token_id": t.token_id,
                "owner": t.owner,
                "token_uri": t.content_locator,
                "event_id": t.event_id,
                "seat": t.seat,
                "sector": t.sector,
                "event_date": t.event_date,
                "checked_in": t.checked_in,
                "status": t.status.value,
                "metadata": t.metadata.to_dict() if t.metadata else None,
            }
            for t in tickets
        ], indent=2))
        return

    if not tickets:
        click.echo("No tickets found.")
        return
    for ticket in tickets:
        click.echo(describe_ticket(ticket))
    click.echo(f"{len(tickets)} ticket(s).")


@tickets_cli.command("transfer")
@click.argument("token_id", type=click.IntRange(min=0))
@click.argument("recipient")
@click.pass_context
def transfer_ticket(ctx, token_id: int, recipient: str):
    """Transfers TOKEN_ID from the configured wallet to RECIPIENT."""
    ledger = get_ledger(ctx)
    settings = ctx.obj["settings"]
    workflow = TransferWorkflow(
        ledger,
        get_sender(ctx, ledger),
        transaction_timeout=settings.transaction_timeout,
        confirmation_timeout=settings.confirmation_timeout
    )
    workflow.add_listener(echo_step)

    click.echo(f"Transferring {format_token_id(token_id)} to {format_address(recipient)}...")
    echo_result(asyncio.run(workflow.run(token_id, recipient)))


@tickets_cli.command("issue")
@click.option("--recipient", required=True, help="Address that receives the ticket.")
@click.option("--event-name", required=True, help="Name of the event.")
@click.option("--seat", required=True, help="Seat identifier (e.g., A35).")
@click.option("--section", required=True, help="Section or sector (e.g., VIP).")
@click.option("--date", "event_date", required=True, help="Event date, ISO 8601 or Unix timestamp.")
@click.option("--image", required=True, help="Locator of the already published ticket artwork.")
@click.option("--description", help="Custom description.")
@click.option("--ticket-number", type=int, help="Ticket number.")
@click.option("--category", help="Ticket category.")
@click.option("--venue", help="Venue name.")
@click.option("--event-id", type=click.IntRange(min=0), help="Event id; generated when omitted.")
@click.pass_context
def issue_ticket(ctx, recipient, event_name, seat, section, event_date, image, description,
                 ticket_number, category, venue, event_id):
    """Mints a new ticket for RECIPIENT."""
    settings = ctx.obj["settings"]
    fields = TicketFields(
        event_name=event_name,
        seat=seat,
        section=section,
        date=int(event_date) if event_date.isdigit() else event_date,
        content_locator=image,
        description=description,
        ticket_number=ticket_number,
        category=category,
        venue=venue
    )
    ledger = get_ledger(ctx)

    async def run():
        async with get_publisher(ctx) as publisher:
            workflow = IssuanceWorkflow(
                ledger,
                publisher,
                transaction_timeout=settings.transaction_timeout,
                confirmation_timeout=settings.confirmation_timeout
            )
            workflow.add_listener(echo_step)
            return await workflow.run(recipient, fields, event_id=event_id)

    click.echo(f"Issuing ticket for {event_name} to {format_address(recipient)}...")
    echo_result(asyncio.run(run()))
