"""SyncService - a full importer run, from inventory to categorized tags."""

import logging
from dataclasses import dataclass

from resobooru.domain.category.service.category import CategoryService, ReconcileResult
from resobooru.domain.category.service.migration import MigrationResult, MigrationService
from resobooru.domain.importer.model.value import ImportResult, ResoniteSession
from resobooru.domain.importer.service.importer import ImportService
from resobooru.domain.shared.service import Service
from resobooru.domain.tagging.model.value import TagBuckets

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    imported: ImportResult
    created_categories: list[str]
    reconciled: ReconcileResult | None = None
    migrated: MigrationResult | None = None


class SyncService(Service):
    """Sequences category setup, import, reconciliation and migrations.

    Reconciliation reads tags that the import creates, so it only starts
    after every record of the import has finished.
    """

    importer: ImportService
    categories: CategoryService
    migrations: MigrationService
    importer_version: str
    use_categories: bool = True
    use_legacy_migrations: bool = False

    async def run(self, session: ResoniteSession) -> SyncResult:
        created: list[str] = []
        if self.use_categories:
            created = await self.categories.ensure_categories()

        imported = await self.importer.run_import(session)
        result = SyncResult(imported=imported, created_categories=created)

        if self.use_categories:
            buckets = TagBuckets.from_photos(imported.photos, self.importer_version)
            result.reconciled = await self.categories.reconcile(buckets)
            logger.info(
                f"Reconciled {result.reconciled.checked} tags, "
                f"{result.reconciled.updated} moved to their category"
            )

        if self.use_legacy_migrations:
            result.migrated = await self.migrations.run()

        return result
