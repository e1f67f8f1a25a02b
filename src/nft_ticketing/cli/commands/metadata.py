import click

from ...metadata import generate_metadata, metadata_to_json, validate_metadata_json
from ...models import TicketFields
from ...types import TicketDataError


@click.group("metadata")
def metadata_cli():
    """Commands for generating and checking ticket metadata."""
    pass


@metadata_cli.command("validate")
@click.argument("path", type=click.File("r"))
def validate(path):
    """Validates a metadata JSON document."""
    result = validate_metadata_json(path.read())

    for error in result.errors:
        click.echo(f"ERROR: {error}")
    for warning in result.warnings:
        click.echo(f"WARNING: {warning}")

    if not result.valid:
        click.echo(f"Invalid metadata ({len(result.errors)} error(s)).")
        raise SystemExit(1)
    click.echo(f"Metadata is valid ({len(result.warnings)} warning(s)).")


@metadata_cli.command("generate")
@click.option("--event-name", required=True, help="Name of the event.")
@click.option("--seat", required=True, help="Seat identifier (e.g., A35).")
@click.option("--section", required=True, help="Section or sector (e.g., VIP).")
@click.option("--date", "event_date", required=True, help="Event date, ISO 8601 or Unix timestamp.")
@click.option("--image", required=True, help="Image locator (ipfs://, https:// or data:image/).")
@click.option("--description", help="Custom description.")
@click.option("--ticket-number", type=int, help="Ticket number.")
@click.option("--category", help="Ticket category.")
@click.option("--venue", help="Venue name.")
@click.option("--external-url", help="Link to the event page.")
@click.option("--compact", is_flag=True, help="Print compact JSON.")
def generate(event_name, seat, section, event_date, image, description, ticket_number,
             category, venue, external_url, compact):
    """Generates a metadata document from ticket fields."""
    fields = TicketFields(
        event_name=event_name,
        seat=seat,
        section=section,
        date=int(event_date) if event_date.isdigit() else event_date,
        content_locator=image,
        description=description,
        ticket_number=ticket_number,
        category=category,
        venue=venue,
        external_url=external_url
    )
    try:
        document = generate_metadata(fields)
    except TicketDataError as e:
        raise click.ClickException(str(e))
    click.echo(metadata_to_json(document, pretty=not compact))
