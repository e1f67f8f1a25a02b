import logging

import click

from ..config import get_settings
from .commands.metadata import metadata_cli
from .commands.tickets import tickets_cli


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx, log_level):
    """A CLI tool for issuing, transferring and inspecting NFT tickets."""
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = get_settings()
    settings = ctx.obj["settings"]
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


cli.add_command(tickets_cli)
cli.add_command(metadata_cli)

if __name__ == '__main__':
    cli()
