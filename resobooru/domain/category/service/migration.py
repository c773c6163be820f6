"""MigrationService - one-shot cleanups of tags written by older importer versions.

Every migration is idempotent: once the board has converged the searches come
back empty and nothing is written. They can be retired once all boards have
been migrated.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import TypeVar

import logfire

from resobooru.domain.category.model.value import RemoteTag, SearchPage
from resobooru.domain.category.port.tag_store import TagStore
from resobooru.domain.category.service.category import CategoryService
from resobooru.domain.shared.error import RemoteCallFailed
from resobooru.domain.shared.service import Service
from resobooru.domain.tagging.model.value import TagBucket

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMESTAMP_TAG_PREFIX = "timestamp:"
TIMESTAMP_TAG_QUERY = r"timestamp\:*"
TEXTURE_ASSET_TAG_QUERY = "texture_asset*"
USER_TAG_PATTERN = "U-*"
YEARS_TO_MIGRATE = 3


def escape_query(term: str) -> str:
    """Escape characters with a meaning in board search queries."""
    return term.replace(":", r"\:").replace(".", r"\.").replace(" ", r"\ ")


@dataclass
class MigrationResult:
    timestamps_migrated: int = 0
    posts_updated: int = 0
    texture_tags_deleted: int = 0
    tags_recategorized: int = 0


class MigrationService(Service):
    """Runs the legacy migrations against the board.

    Searches are paged: ``page_size`` results per request and at most
    ``max_pages`` requests per query. A query with more matches than that is
    truncated and a warning is logged; the remainder is picked up next run.
    """

    store: TagStore
    category_service: CategoryService
    categories: Mapping[str, str]
    use_categories: bool = True
    page_size: int = 100
    max_pages: int = 10
    today: Callable[[], date] = date.today

    async def run(self) -> MigrationResult:
        result = MigrationResult()
        with logfire.span("LegacyMigrations"):
            await self.migrate_timestamps(result)
            await self.remove_texture_asset_tags(result)

            if not self.use_categories:
                logger.warning("Category migrations skipped: categories are disabled")
                return result

            await self.recategorize_user_tags(result)
            await self.recategorize_dates_and_versions(result)
        logger.info(f"Legacy migrations finished: {result}")
        return result

    async def migrate_timestamps(self, result: MigrationResult) -> None:
        """Replace ``timestamp:<ISO8601>`` tags with a plain date tag.

        Every post carrying the timestamp tag gets the date tag first; the
        timestamp tag is deleted only after all of its posts were updated.
        """
        try:
            tags = await self._collect(self.store.search_tags, TIMESTAMP_TAG_QUERY)
        except RemoteCallFailed as e:
            logger.warning(f"Unable to search timestamp tags: {e}")
            return

        for tag in tags:
            date_tag = tag.name.removeprefix(TIMESTAMP_TAG_PREFIX).split("T")[0]
            if not date_tag:
                continue
            try:
                posts = await self._collect(self.store.search_posts, escape_query(tag.name))
            except RemoteCallFailed as e:
                logger.warning(f"Unable to find posts tagged {tag.name}: {e}")
                continue

            all_updated = True
            for post in posts:
                try:
                    await self.store.update_post_tags(
                        post.id, [*post.tag_names, date_tag], version=post.version
                    )
                except RemoteCallFailed as e:
                    logger.warning(f"Unable to add {date_tag} to post {post.id}: {e}")
                    all_updated = False
                    continue
                result.posts_updated += 1

            if not all_updated:
                logger.warning(f"Keeping {tag.name} until all of its posts are migrated")
                continue
            if await self._delete_tag(tag):
                result.timestamps_migrated += 1

    async def remove_texture_asset_tags(self, result: MigrationResult) -> None:
        """Delete the obsolete ``texture_asset`` tags."""
        try:
            tags = await self._collect(self.store.search_tags, TEXTURE_ASSET_TAG_QUERY)
        except RemoteCallFailed as e:
            logger.warning(f"Unable to search texture asset tags: {e}")
            return
        for tag in tags:
            if await self._delete_tag(tag):
                result.texture_tags_deleted += 1

    async def recategorize_user_tags(self, result: MigrationResult) -> None:
        category = self.categories.get(TagBucket.USERS)
        if not category:
            return
        query = f"{USER_TAG_PATTERN} -category:{escape_query(category)}"
        await self._recategorize(query, category, result)

    async def recategorize_dates_and_versions(self, result: MigrationResult) -> None:
        """Move date and game-version tags of recent years into their categories."""
        date_category = self.categories.get(TagBucket.DATE_TAKEN)
        version_category = self.categories.get(TagBucket.GAME_VERSION)
        current_year = self.today().year
        for year in range(current_year, current_year - YEARS_TO_MIGRATE, -1):
            if date_category:
                await self._recategorize(f"{year}-*-*", date_category, result)
            if version_category:
                await self._recategorize(f"{year}.*.*.*", version_category, result)

    async def _recategorize(self, query: str, category: str, result: MigrationResult) -> None:
        try:
            tags = await self._collect(self.store.search_tags, query)
        except RemoteCallFailed as e:
            logger.warning(f"Unable to search tags for '{query}': {e}")
            return
        assigned = await self.category_service.assign([tag.name for tag in tags], category)
        result.tags_recategorized += assigned.updated

    async def _delete_tag(self, tag: RemoteTag) -> bool:
        """Delete a tag, refreshing its version token on a conflict."""
        version = tag.version
        for attempt in range(self.category_service.max_retries + 1):
            try:
                await self.store.delete_tag(tag.name, version=version)
                return True
            except RemoteCallFailed as e:
                if not e.is_conflict or attempt == self.category_service.max_retries:
                    logger.warning(f"Unable to delete tag {tag.name}: {e}")
                    return False
            try:
                version = (await self.store.get_tag(tag.name)).version
            except RemoteCallFailed as e:
                logger.warning(f"Unable to refresh tag {tag.name}: {e}")
                return False
        return False

    async def _collect(
        self, search: Callable[[str, int, int], Awaitable[SearchPage[T]]], query: str
    ) -> list[T]:
        """Gather up to ``max_pages`` pages of search results."""
        results: list[T] = []
        total = 0
        for _ in range(self.max_pages):
            page = await search(query, self.page_size, len(results))
            results.extend(page.results)
            total = page.total
            if not page.results or len(results) >= total:
                return results
        if len(results) < total:
            logger.warning(
                f"Search '{query}' truncated at {len(results)} of {total} results "
                f"(max_pages={self.max_pages})"
            )
        return results
