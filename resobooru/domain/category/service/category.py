"""CategoryService - keeps board tag categories in line with configuration."""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

import logfire

from resobooru.domain.category.port.tag_store import TagStore
from resobooru.domain.shared.error import RemoteCallFailed
from resobooru.domain.shared.service import Service
from resobooru.domain.tagging.model.value import TagBuckets, sanitize_tag

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "default"


class TagOutcome(StrEnum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Counts of per-tag outcomes of a reconciliation pass."""

    outcomes: dict[TagOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in TagOutcome}
    )

    def record(self, outcome: TagOutcome) -> None:
        self.outcomes[outcome] += 1

    def merge(self, other: "ReconcileResult") -> None:
        for outcome, count in other.outcomes.items():
            self.outcomes[outcome] += count

    @property
    def checked(self) -> int:
        return sum(self.outcomes.values())

    @property
    def updated(self) -> int:
        return self.outcomes[TagOutcome.UPDATED]

    @property
    def missing(self) -> int:
        return self.outcomes[TagOutcome.MISSING]

    @property
    def failed(self) -> int:
        return self.outcomes[TagOutcome.FAILED]


class CategoryService(Service):
    """Creates configured tag categories and moves tags into them.

    ``categories`` maps a tag bucket name (e.g. "users") to the name of the
    board category its tags belong in. Tag updates carry the tag's version
    token; a stale token (409) is retried with a freshly fetched tag.
    """

    store: TagStore
    categories: Mapping[str, str]
    max_retries: int = 3
    concurrency: int = 8

    async def ensure_categories(self) -> list[str]:
        """Create every configured category the board does not have yet.

        Returns:
            Names of the categories that were created.
        """
        wanted = list(dict.fromkeys(self.categories.values()))
        try:
            existing = {category.name for category in await self.store.list_tag_categories()}
        except RemoteCallFailed as e:
            logger.error(f"Unable to list tag categories: {e}")
            return []

        created: list[str] = []
        for order, name in enumerate(wanted):
            if name in existing:
                continue
            try:
                await self.store.create_tag_category(
                    name=name, color=DEFAULT_CATEGORY_COLOR, order=order
                )
            except RemoteCallFailed as e:
                logger.error(f"Couldn't create tag category '{name}': {e}")
                continue
            logger.info(f"Created tag category '{name}'")
            created.append(name)
        return created

    async def reconcile(self, buckets: TagBuckets) -> ReconcileResult:
        """Move the tags of every configured bucket into the bucket's category."""
        result = ReconcileResult()
        with logfire.span("ReconcileTagCategories"):
            for bucket, tags in buckets.items():
                category = self.categories.get(bucket)
                if not category:
                    continue
                bucket_result = await self.assign(tags, category)
                logger.info(
                    f"Bucket {bucket}: {bucket_result.updated} updated, "
                    f"{bucket_result.missing} missing of {bucket_result.checked} tags"
                )
                result.merge(bucket_result)
        return result

    async def assign(self, tags: Iterable[str], category: str) -> ReconcileResult:
        """Put each tag into ``category``; tags already there are left alone."""
        names = sorted({sanitize_tag(tag) for tag in tags if tag})
        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(name: str) -> TagOutcome:
            async with semaphore:
                return await self.assign_tag(name, category)

        result = ReconcileResult()
        for outcome in await asyncio.gather(*(guarded(name) for name in names)):
            result.record(outcome)
        return result

    async def assign_tag(self, name: str, category: str) -> TagOutcome:
        """Fetch-compare-patch a single tag's category."""
        for attempt in range(self.max_retries + 1):
            try:
                tag = await self.store.get_tag(name)
            except RemoteCallFailed as e:
                if e.is_not_found:
                    logger.warning(f"Unable to find tag {name} to update category.")
                    return TagOutcome.MISSING
                logger.warning(f"Unable to fetch tag {name}: {e}")
                return TagOutcome.FAILED

            if tag.category == category:
                return TagOutcome.UNCHANGED

            try:
                await self.store.update_tag(name, category=category, version=tag.version)
            except RemoteCallFailed as e:
                if e.is_conflict and attempt < self.max_retries:
                    logger.debug(f"Tag {name} changed concurrently, retrying")
                    continue
                logger.warning(f"Unable to move tag {name} to category {category}: {e}")
                return TagOutcome.FAILED
            return TagOutcome.UPDATED

        return TagOutcome.FAILED
