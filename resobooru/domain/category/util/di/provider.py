from dishka import Provider, provide

from resobooru.config import Config
from resobooru.domain.category.port.tag_store import TagStore
from resobooru.domain.category.service.category import CategoryService
from resobooru.domain.category.service.migration import MigrationService
from resobooru.util.di.scope import Scope


class CategoryProvider(Provider):
    @provide(scope=Scope.RUN)
    def get_category_service(self, store: TagStore, config: Config) -> CategoryService:
        return CategoryService(
            store=store,
            categories=config.categories.mapping,
            max_retries=config.categories.max_retries,
            concurrency=config.categories.concurrency,
        )

    @provide(scope=Scope.RUN)
    def get_migration_service(
        self,
        store: TagStore,
        category_service: CategoryService,
        config: Config,
    ) -> MigrationService:
        return MigrationService(
            store=store,
            category_service=category_service,
            categories=config.categories.mapping,
            use_categories=config.categories.enabled,
            page_size=config.migrations.page_size,
            max_pages=config.migrations.max_pages,
        )
