"""ContentForge CLI entry point."""

import logging
import os

import click


def _log_level(verbose: bool) -> str:
    return "DEBUG" if verbose else os.environ.get("CONTENTFORGE_LOG_LEVEL", "WARNING").upper()


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """ContentForge — headless content backend CLI."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = _log_level(verbose)
    logging.basicConfig(level=ctx.obj["log_level"], format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option(
    "--port",
    type=int,
    default=lambda: int(os.environ.get("CONTENTFORGE_PORT", "8000")),
    help="Port to listen on (CONTENTFORGE_PORT, default 8000).",
)
@click.option("--reload", is_flag=True, default=False, help="Restart on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "contentforge.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=ctx.obj["log_level"].lower(),
    )


# Register subcommand groups
from contentforge.cli.content_cmd import content  # noqa: E402
from contentforge.cli.schema_cmd import schema  # noqa: E402

cli.add_command(content)
cli.add_command(schema)
