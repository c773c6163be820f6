"""Categories command - create the configured tag categories on the board."""

import asyncio
import sys

import cyclopts

from resobooru.application.di import create_container
from resobooru.cli.console import get_console
from resobooru.cli.util.bootstrap import load_config
from resobooru.config import Config
from resobooru.domain.category.service.category import CategoryService
from resobooru.domain.shared.error import ExternalServiceError

app = cyclopts.App(name="categories", help="Manage board tag categories")


@app.default
def categories() -> None:
    """Create every configured tag category that the board does not have yet."""
    console = get_console()
    config = load_config()
    if not config.categories.mapping:
        console.error(
            "No tag categories configured",
            hint="Set categories.mapping in the config file",
        )
        sys.exit(1)

    try:
        created = asyncio.run(_ensure(config))
    except ExternalServiceError as e:
        console.error(e.message, hint="Check that the board is reachable")
        sys.exit(1)

    if not created:
        console.info("All configured categories already exist")
    for name in created:
        console.success(f"Created tag category {name}")


async def _ensure(config: Config) -> list[str]:
    container = create_container(config)
    try:
        async with container() as run_scope:
            service = await run_scope.get(CategoryService)
            return await service.ensure_categories()
    finally:
        await container.close()
