from dishka import AsyncContainer, make_async_container

from resobooru.config import Config
from resobooru.domain.category.util.di.provider import CategoryProvider
from resobooru.domain.importer.util.di.provider import ImporterProvider
from resobooru.infrastructure.di import InfrastructureProvider
from resobooru.util.di.scope import Scope


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        InfrastructureProvider(),
        ImporterProvider(),
        CategoryProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
