from dishka import Provider, provide

from resobooru.config import Config
from resobooru.domain.category.service.category import CategoryService
from resobooru.domain.category.service.migration import MigrationService
from resobooru.domain.importer.port.photo_source import PhotoSource
from resobooru.domain.importer.port.post_store import PostStore
from resobooru.domain.importer.service.importer import ImportService
from resobooru.domain.importer.service.sync import SyncService
from resobooru.domain.photo.port.asset_decoder import AssetDecoder
from resobooru.domain.photo.service.locator import ComponentLocator
from resobooru.domain.photo.service.normalizer import MetadataNormalizer
from resobooru.util.di.scope import Scope


class ImporterProvider(Provider):
    @provide(scope=Scope.APP)
    def get_locator(self, config: Config) -> ComponentLocator:
        return ComponentLocator(legacy_systems=config.resonite.legacy_photo_systems)

    @provide(scope=Scope.APP)
    def get_normalizer(self, config: Config) -> MetadataNormalizer:
        return MetadataNormalizer(asset_base_url=config.resonite.asset_base_url)

    @provide(scope=Scope.RUN)
    def get_import_service(
        self,
        source: PhotoSource,
        posts: PostStore,
        decoder: AssetDecoder,
        locator: ComponentLocator,
        normalizer: MetadataNormalizer,
        config: Config,
    ) -> ImportService:
        return ImportService(
            source=source,
            posts=posts,
            decoder=decoder,
            locator=locator,
            normalizer=normalizer,
            photo_location=config.resonite.photo_location,
            asset_base_url=config.resonite.asset_base_url,
            importer_version=config.version,
            delete_source_pictures=config.importer.delete_source_pictures,
            concurrency=config.importer.concurrency,
        )

    @provide(scope=Scope.RUN)
    def get_sync_service(
        self,
        importer: ImportService,
        categories: CategoryService,
        migrations: MigrationService,
        config: Config,
    ) -> SyncService:
        return SyncService(
            importer=importer,
            categories=categories,
            migrations=migrations,
            importer_version=config.version,
            use_categories=config.categories.enabled,
            use_legacy_migrations=config.migrations.enabled,
        )
