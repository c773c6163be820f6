"""Run command - import screenshots and bring tag categories up to date."""

import asyncio
import sys

import cyclopts

from resobooru.application.di import create_container
from resobooru.cli.console import get_console
from resobooru.cli.util.bootstrap import load_config, require_resonite_credentials
from resobooru.cli.util.session import login
from resobooru.config import Config
from resobooru.domain.importer.model.value import ImportStatus
from resobooru.domain.importer.service.sync import SyncResult, SyncService
from resobooru.domain.shared.error import (
    AuthenticationError,
    ConfigurationError,
    ExternalServiceError,
)
from resobooru.infrastructure.resonite.client import ResoniteClient

app = cyclopts.App(name="run", help="Import screenshots into the board")


@app.default
def run(*, totp: str | None = None) -> None:
    """Import all screenshots, then reconcile categories and run migrations if enabled.

    Args:
        totp: TOTP code for accounts with two-factor authentication.
              Prompted for interactively when needed and not given.
    """
    console = get_console()
    config = load_config()

    try:
        require_resonite_credentials(config)
        result = asyncio.run(_run(config, totp))
    except ConfigurationError as e:
        console.error(e.message)
        sys.exit(1)
    except AuthenticationError as e:
        console.error(e.message, hint="Check your Resonite credentials")
        sys.exit(1)
    except ExternalServiceError as e:
        console.error(e.message, hint="Check that Resonite and the board are reachable")
        sys.exit(1)

    _print_summary(result)


async def _run(config: Config, totp: str | None) -> SyncResult:
    console = get_console()
    container = create_container(config)
    try:
        resonite = await container.get(ResoniteClient)
        session = await login(resonite, console, totp)
        async with container() as run_scope:
            sync = await run_scope.get(SyncService)
            return await sync.run(session)
    finally:
        await container.close()


def _print_summary(result: SyncResult) -> None:
    console = get_console()
    imported = result.imported
    console.table(
        [{"status": status.value, "count": imported.count(status)} for status in ImportStatus],
        [("status", "Status"), ("count", "Records")],
        title=f"Imported {imported.record_count} photo records",
    )
    for name in result.created_categories:
        console.success(f"Created tag category {name}")
    if result.reconciled is not None:
        console.info(
            f"Categories: {result.reconciled.updated} tags moved, "
            f"{result.reconciled.missing} not found"
        )
    if result.migrated is not None:
        console.info(f"Migrations: {result.migrated}")
