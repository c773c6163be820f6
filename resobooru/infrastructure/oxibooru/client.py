"""HTTP adapter for the Oxibooru (szurubooru-compatible) REST API."""

import logging
from collections.abc import Sequence
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from resobooru.domain.category.model.value import (
    PostSummary,
    RemoteTag,
    SearchPage,
    TagCategory,
)
from resobooru.domain.category.port.tag_store import TagStore
from resobooru.domain.importer.model.value import ReverseSearchResult
from resobooru.domain.importer.port.post_store import PostStore
from resobooru.domain.shared.error import (
    ExternalServiceError,
    RemoteCallFailed,
    UnexpectedResponse,
)
from resobooru.domain.tagging.model.value import Safety

logger = logging.getLogger(__name__)

TAG_SEARCH_FIELDS = "names,category,version"
POST_SEARCH_FIELDS = "id,version,tags"

M = TypeVar("M", bound=BaseModel)


def _segment(name: str) -> str:
    """Quote a tag name for use as a URL path segment."""
    return quote(name, safe="")


def _parse(model: type[M], data: Any, endpoint: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UnexpectedResponse(endpoint, str(e)) from e


def _field(data: dict[str, Any], key: str, endpoint: str) -> Any:
    if key not in data:
        raise UnexpectedResponse(endpoint, f"missing '{key}'")
    return data[key]


class OxibooruClient(PostStore, TagStore):
    """Implements the post and tag ports against a board's ``/api`` endpoints.

    The httpx client is expected to carry the base URL and the authorization
    headers (see ``build_oxibooru_http_client``). Non-success responses are
    logged with endpoint, status and body, then raised as RemoteCallFailed;
    success responses with an unusable body raise UnexpectedResponse.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    async def upload_content(self, content_url: str) -> str:
        data = await self._call("POST", "uploads/", json={"contentUrl": content_url})
        return _field(data, "token", "uploads/")

    async def reverse_search(self, content_token: str) -> ReverseSearchResult:
        data = await self._call(
            "POST", "posts/reverse-search/", json={"contentToken": content_token}
        )
        return _parse(
            ReverseSearchResult,
            {
                "exact_post": data.get("exactPost"),
                "similar_posts": data.get("similarPosts") or (),
            },
            "posts/reverse-search/",
        )

    async def create_post(
        self,
        tags: Sequence[str],
        content_token: str,
        source: str,
        safety: Safety,
    ) -> PostSummary:
        data = await self._call(
            "POST",
            "posts/",
            json={
                "tags": list(tags),
                "contentToken": content_token,
                "source": source,
                "safety": str(safety),
            },
        )
        return _parse(PostSummary, data, "posts/")

    async def search_posts(
        self, query: str, limit: int, offset: int = 0
    ) -> SearchPage[PostSummary]:
        data = await self._call(
            "GET",
            "posts/",
            params={
                "query": query,
                "limit": limit,
                "offset": offset,
                "fields": POST_SEARCH_FIELDS,
            },
        )
        return _parse(SearchPage[PostSummary], data, "posts/")

    async def update_post_tags(
        self, post_id: int, tags: Sequence[str], version: int
    ) -> PostSummary:
        data = await self._call(
            "PUT", f"post/{post_id}", json={"tags": list(tags), "version": version}
        )
        return _parse(PostSummary, data, f"post/{post_id}")

    # -------------------------------------------------------------------------
    # Tags and categories
    # -------------------------------------------------------------------------

    async def list_tag_categories(self) -> list[TagCategory]:
        data = await self._call("GET", "tag-categories/")
        results = _field(data, "results", "tag-categories/")
        return [_parse(TagCategory, item, "tag-categories/") for item in results]

    async def create_tag_category(self, name: str, color: str, order: int) -> TagCategory:
        data = await self._call(
            "POST", "tag-categories/", json={"name": name, "color": color, "order": order}
        )
        return _parse(TagCategory, data, "tag-categories/")

    async def get_tag(self, name: str) -> RemoteTag:
        data = await self._call("GET", f"tag/{_segment(name)}")
        return _parse(RemoteTag, data, f"tag/{name}")

    async def update_tag(self, name: str, category: str, version: int | None) -> RemoteTag:
        data = await self._call(
            "PUT", f"tag/{_segment(name)}", json={"category": category, "version": version}
        )
        return _parse(RemoteTag, data, f"tag/{name}")

    async def delete_tag(self, name: str, version: int | None) -> None:
        await self._call("DELETE", f"tag/{_segment(name)}", json={"version": version})

    async def search_tags(
        self, query: str, limit: int, offset: int = 0
    ) -> SearchPage[RemoteTag]:
        data = await self._call(
            "GET",
            "tags/",
            params={
                "query": query,
                "limit": limit,
                "offset": offset,
                "fields": TAG_SEARCH_FIELDS,
            },
        )
        return _parse(SearchPage[RemoteTag], data, "tags/")

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"{method} {endpoint} failed: {e}") from e

        if not response.is_success:
            logger.warning(
                f"{method} {endpoint} {response.status_code} "
                f"{response.reason_phrase}: {response.text} params={params} body={json}"
            )
            raise RemoteCallFailed(endpoint, response.status_code, response.text)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"{method} {endpoint} returned a non-JSON body: {response.text[:200]}")
            raise UnexpectedResponse(endpoint, "body is not JSON") from e
        if not isinstance(data, dict):
            raise UnexpectedResponse(endpoint, f"expected an object, got {type(data).__name__}")
        return data
