"""DI provider for infrastructure adapters."""

from typing import AsyncIterable, NewType

import httpx
from dishka import AnyOf, Provider, from_context, provide

from resobooru.config import Config
from resobooru.domain.category.port.tag_store import TagStore
from resobooru.domain.importer.port.photo_source import PhotoSource
from resobooru.domain.importer.port.post_store import PostStore
from resobooru.domain.photo.port.asset_decoder import AssetDecoder
from resobooru.infrastructure.container.decoder import BrotliBsonDecoder
from resobooru.infrastructure.oxibooru.client import OxibooruClient
from resobooru.infrastructure.resonite.client import ResoniteClient
from resobooru.util.di.scope import Scope

# Disambiguate the two httpx.AsyncClient instances
ResoniteHttpClient = NewType("ResoniteHttpClient", httpx.AsyncClient)
OxibooruHttpClient = NewType("OxibooruHttpClient", httpx.AsyncClient)

# Longer read timeout for asset downloads (screenshots can be several MB)
_RESONITE_TIMEOUT = httpx.Timeout(
    connect=5.0,
    read=60.0,
    write=5.0,
    pool=5.0,
)


def build_oxibooru_http_client(config: Config) -> httpx.AsyncClient:
    """HTTP client preconfigured with the board's API base URL and credentials."""
    return httpx.AsyncClient(
        base_url=config.oxibooru.api_url,
        headers={
            "Authorization": config.oxibooru.authorization,
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
        timeout=config.oxibooru.timeout,
    )


class InfrastructureProvider(Provider):
    """DI provider for HTTP clients and the adapters built on them."""

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    async def get_resonite_http_client(self) -> AsyncIterable[ResoniteHttpClient]:
        client = httpx.AsyncClient(timeout=_RESONITE_TIMEOUT, follow_redirects=True)
        yield ResoniteHttpClient(client)
        await client.aclose()

    @provide(scope=Scope.APP)
    async def get_oxibooru_http_client(
        self, config: Config
    ) -> AsyncIterable[OxibooruHttpClient]:
        client = build_oxibooru_http_client(config)
        yield OxibooruHttpClient(client)
        await client.aclose()

    @provide(scope=Scope.APP)
    def get_resonite_client(
        self, config: Config, client: ResoniteHttpClient
    ) -> AnyOf[ResoniteClient, PhotoSource]:
        return ResoniteClient(config=config.resonite, client=client)

    @provide(scope=Scope.APP)
    def get_oxibooru_client(
        self, client: OxibooruHttpClient
    ) -> AnyOf[OxibooruClient, PostStore, TagStore]:
        return OxibooruClient(client=client)

    @provide(scope=Scope.APP)
    def get_asset_decoder(self) -> AssetDecoder:
        return BrotliBsonDecoder()
