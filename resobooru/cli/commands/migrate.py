"""Migrate command - run the legacy tag migrations on their own."""

import asyncio
import sys

import cyclopts

from resobooru.application.di import create_container
from resobooru.cli.console import get_console
from resobooru.cli.util.bootstrap import load_config
from resobooru.config import Config
from resobooru.domain.category.service.migration import MigrationResult, MigrationService
from resobooru.domain.shared.error import ExternalServiceError

app = cyclopts.App(name="migrate", help="Clean up tags written by older importer versions")


@app.default
def migrate() -> None:
    """Split timestamp tags, drop texture asset tags and recategorize old tags."""
    console = get_console()
    config = load_config()
    try:
        with console.status("Migrating tags..."):
            result = asyncio.run(_migrate(config))
    except ExternalServiceError as e:
        console.error(e.message, hint="Check that the board is reachable")
        sys.exit(1)

    console.table(
        [
            {"step": "timestamp tags migrated", "count": result.timestamps_migrated},
            {"step": "posts updated", "count": result.posts_updated},
            {"step": "texture asset tags deleted", "count": result.texture_tags_deleted},
            {"step": "tags recategorized", "count": result.tags_recategorized},
        ],
        [("step", "Step"), ("count", "Count")],
        title="Legacy migrations",
    )


async def _migrate(config: Config) -> MigrationResult:
    container = create_container(config)
    try:
        async with container() as run_scope:
            service = await run_scope.get(MigrationService)
            return await service.run()
    finally:
        await container.close()
