"""Command line entry point: run the server or a one-off import."""

import asyncio
from pathlib import Path
from typing import Optional

import click
import httpx

from .config import get_settings
from .dependencies import get_importer
from .errors import ImporterError
from .main import configure_logging
from .models.database import get_session_maker, init_db
from .services.sync_service import SyncService


async def _with_service(database_url: str, action):
    engine = await init_db(database_url)
    session_factory = await get_session_maker(engine)
    try:
        async with session_factory() as session:
            return await action(SyncService(session))
    finally:
        await engine.dispose()


@click.group()
@click.option(
    "--database-url",
    help="SQLAlchemy database URL (overrides DATABASE_URL environment variable)",
    envvar="DATABASE_URL",
)
@click.option("--log-level", default=None, help="Logging level, e.g. DEBUG")
@click.pass_context
def cli(ctx, database_url: Optional[str], log_level: Optional[str]):
    """Actual Flow - import Lunch Flow transactions into Actual Budget."""
    ctx.ensure_object(dict)
    configure_logging(log_level)
    ctx.obj["database_url"] = database_url or get_settings().database_url


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int):
    """Run the API server and the import scheduler."""
    import uvicorn
    uvicorn.run("actual_flow.main:app", host=host, port=port)


@cli.command("import")
@click.option("--dry-run", is_flag=True, help="Fetch and map but do not import")
@click.pass_context
def import_transactions(ctx, dry_run: bool):
    """Import transactions from all mapped accounts (non-interactive)."""
    Path("./data").mkdir(exist_ok=True)

    async def action(service: SyncService):
        return await service.run_import(get_importer(), trigger='cli', dry_run=dry_run)

    try:
        result = asyncio.run(_with_service(ctx.obj["database_url"], action))
    except ImporterError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except httpx.HTTPError as e:
        click.echo(f"Error: failed to import transactions: {e}", err=True)
        ctx.exit(1)

    click.echo("\nAccount processing summary:")
    for account in result.account_results:
        status = "ok" if account.success else "failed"
        pending = account.pending_count if account.include_pending else "n/a"
        click.echo(
            f"  {account.account}: {account.posted_count} posted, "
            f"{pending} pending, since {account.sync_start_date or 'start'} [{status}]"
        )

    if result.duplicate_check_failed:
        click.echo("Warning: duplicate check failed, imported without duplicate detection", err=True)
    click.echo(result.message)


@cli.command()
@click.pass_context
def mappings(ctx):
    """List configured account mappings."""
    async def action(service: SyncService):
        return await service.get_mapping_schemas()

    items = asyncio.run(_with_service(ctx.obj["database_url"], action))

    if not items:
        click.echo("No account mappings configured")
        return

    for mapping in items:
        pending = "with pending" if mapping.include_pending else "posted only"
        start = mapping.sync_start_date.isoformat() if mapping.sync_start_date else "None"
        click.echo(
            f"{mapping.lunch_flow_account_id}: {mapping.label} "
            f"(sync start: {start}, {pending})"
        )


@cli.command("test")
@click.pass_context
def test_connections(ctx):
    """Test the Lunch Flow and Actual Budget connections."""
    status = asyncio.run(get_importer().test_connections())

    click.echo(f"Lunch Flow: {'connected' if status.lunch_flow else 'failed'}")
    click.echo(f"Actual Budget: {'connected' if status.actual_budget else 'failed'}")
    if not status.ok:
        ctx.exit(1)


def main():
    """Main entry point for CLI."""
    cli()
