"""ImportService - moves screenshots from the inventory onto the board."""

import asyncio
import logging
from datetime import UTC, datetime

import logfire

from resobooru.domain.importer.model.value import (
    ImportResult,
    ImportStatus,
    RecordOutcome,
    ResoniteSession,
)
from resobooru.domain.importer.port.photo_source import PhotoSource
from resobooru.domain.importer.port.post_store import PostStore
from resobooru.domain.photo.model.value import PhotoMetadata, RawRecord
from resobooru.domain.photo.port.asset_decoder import AssetDecoder
from resobooru.domain.photo.service.locator import ComponentLocator
from resobooru.domain.photo.service.normalizer import MetadataNormalizer
from resobooru.domain.shared.error import ExternalServiceError, RecordError
from resobooru.domain.shared.service import Service
from resobooru.domain.tagging.service.synthesizer import synthesize_tags

logger = logging.getLogger(__name__)


class ImportService(Service):
    """Runs decode, locate, normalize, tag and post for every photo record.

    Records are processed concurrently, bounded by ``concurrency``. A record
    that fails is logged and skipped; it never aborts the other records.
    ``run_import`` only returns once every record has finished.
    """

    source: PhotoSource
    posts: PostStore
    decoder: AssetDecoder
    locator: ComponentLocator
    normalizer: MetadataNormalizer
    photo_location: str
    asset_base_url: str
    importer_version: str
    delete_source_pictures: bool = False
    concurrency: int = 4

    async def run_import(self, session: ResoniteSession) -> ImportResult:
        """Import every photo record stored at ``photo_location``.

        Args:
            session: Logged-in Resonite user whose inventory is imported.

        Returns:
            ImportResult with one outcome per candidate record.
        """
        started_at = datetime.now(UTC)
        records = await self.source.list_records(session, self.photo_location)
        candidates = [record for record in records if record.is_photo_candidate]
        logger.info(
            f"Starting import of {len(candidates)} photo records "
            f"({len(records)} records at {self.photo_location})"
        )

        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(record: RawRecord) -> RecordOutcome:
            async with semaphore:
                return await self.import_record(session, record)

        outcomes = list(await asyncio.gather(*(guarded(record) for record in candidates)))

        result = ImportResult(
            record_count=len(candidates),
            started_at=started_at,
            completed_at=datetime.now(UTC),
            outcomes=outcomes,
        )
        logger.info(
            f"Import completed: {result.count(ImportStatus.CREATED)} created, "
            f"{result.count(ImportStatus.DUPLICATE)} duplicates, "
            f"{result.count(ImportStatus.SKIPPED)} skipped, "
            f"{result.count(ImportStatus.FAILED)} failed"
        )
        return result

    async def read_metadata(self, record: RawRecord) -> PhotoMetadata | None:
        """Download and decode a record's container into PhotoMetadata.

        Returns:
            The metadata, or None if the container holds no components.

        Raises:
            DecodeError, UnknownImageSystem, MalformedMetadata: The record is unusable.
            ExternalServiceError: The asset could not be downloaded.
        """
        blob = await self.source.fetch_asset(record.asset_url(self.asset_base_url))
        document = self.decoder.decode(blob, record_id=record.id)
        components = self.locator.locate(document, record.tags, record_id=record.id)
        if components is None:
            return None
        return self.normalizer.normalize(components, record_id=record.id)

    async def import_record(
        self, session: ResoniteSession, record: RawRecord
    ) -> RecordOutcome:
        outcome = RecordOutcome(
            record_id=record.id, status=ImportStatus.FAILED, owner_id=record.owner_id
        )
        with logfire.span("ImportRecord", record_id=record.id, name=record.name):
            try:
                metadata = await self.read_metadata(record)
                if metadata is None:
                    logger.info(f"[{record.id}] {record.name} holds no components, skipping")
                    outcome.status = ImportStatus.NOT_AN_IMAGE
                    return outcome
                outcome.metadata = metadata

                tag_set = synthesize_tags(
                    record.tags, metadata, record.owner_id, self.importer_version
                )
                outcome.tag_set = tag_set

                content_token = await self.posts.upload_content(metadata.asset_url)
                match = await self.posts.reverse_search(content_token)
                if match.is_duplicate:
                    logger.info(f"[{record.id}] {metadata.location.name} already on the board")
                    outcome.status = ImportStatus.DUPLICATE
                else:
                    await self.posts.create_post(
                        tags=tag_set.sorted(),
                        content_token=content_token,
                        source=metadata.asset_url,
                        safety=tag_set.safety,
                    )
                    logger.info(f"[{record.id}] {metadata.location.name} posted")
                    outcome.status = ImportStatus.CREATED
            except RecordError as e:
                logger.warning(f"Skipping record {record.name}: {e}")
                outcome.status = ImportStatus.SKIPPED
                outcome.reason = str(e)
                return outcome
            except ExternalServiceError as e:
                logger.warning(f"[{record.id}] Import of {record.name} failed: {e}")
                outcome.reason = str(e)
                return outcome

            await self._cleanup(session, record)
        return outcome

    async def _cleanup(self, session: ResoniteSession, record: RawRecord) -> None:
        """Delete the source record once it is safely on the board."""
        if not self.delete_source_pictures:
            return
        try:
            await self.source.delete_record(session, record.id)
        except ExternalServiceError as e:
            logger.warning(f"[{record.id}] Unable to delete source record: {e}")
