"""Unit tests for the Oxibooru HTTP adapter."""

import json

import httpx
import pytest

from resobooru.config import Config
from resobooru.domain.shared.error import (
    ExternalServiceError,
    RemoteCallFailed,
    UnexpectedResponse,
)
from resobooru.domain.tagging.model.value import Safety
from resobooru.infrastructure.di import build_oxibooru_http_client
from resobooru.infrastructure.oxibooru.client import OxibooruClient
from resobooru.infrastructure.oxibooru.config import OxibooruConfig


class Recorder:
    """MockTransport handler answering from a route table and recording requests."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes.get(
            (request.method, request.url.path), httpx.Response(404, text="no route")
        )

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(routes: dict[tuple[str, str], httpx.Response]) -> tuple[OxibooruClient, Recorder]:
    recorder = Recorder(routes)
    http = httpx.AsyncClient(
        base_url="http://board.test/api/", transport=httpx.MockTransport(recorder)
    )
    return OxibooruClient(http), recorder


def test_authorization_header_is_base64_token():
    config = OxibooruConfig(instance="http://board.test/", user="alice", token="secret")

    assert config.api_url == "http://board.test/api/"
    # base64("alice:secret")
    assert config.authorization == "Token YWxpY2U6c2VjcmV0"


def test_http_client_carries_base_url_and_credentials():
    config = Config(oxibooru={"instance": "http://board.test", "user": "alice", "token": "secret"})

    client = build_oxibooru_http_client(config)

    assert str(client.base_url) == "http://board.test/api/"
    assert client.headers["Authorization"] == "Token YWxpY2U6c2VjcmV0"
    assert client.headers["Accept"] == "application/json"


class TestPosts:
    @pytest.mark.asyncio
    async def test_upload_then_create(self):
        client, recorder = make_client(
            {
                ("POST", "/api/uploads/"): httpx.Response(200, json={"token": "tok"}),
                ("POST", "/api/posts/"): httpx.Response(
                    200, json={"id": 5, "version": 1, "tags": [{"names": ["cat"]}]}
                ),
            }
        )

        token = await client.upload_content("https://assets.resonite.com/abc")
        post = await client.create_post(["cat"], token, "https://src", Safety.SKETCHY)

        assert token == "tok"
        assert post.id == 5
        assert post.tag_names == ["cat"]
        assert json.loads(recorder.last.content) == {
            "tags": ["cat"],
            "contentToken": "tok",
            "source": "https://src",
            "safety": "sketchy",
        }

    @pytest.mark.asyncio
    async def test_reverse_search_exact_match_is_duplicate(self):
        client, _ = make_client(
            {
                ("POST", "/api/posts/reverse-search/"): httpx.Response(
                    200,
                    json={
                        "exactPost": {"id": 3, "version": 2, "tags": [], "safety": "safe"},
                        "similarPosts": [],
                    },
                )
            }
        )

        result = await client.reverse_search("tok")

        assert result.is_duplicate
        assert result.exact_post.id == 3

    @pytest.mark.asyncio
    async def test_reverse_search_without_match(self):
        client, _ = make_client(
            {
                ("POST", "/api/posts/reverse-search/"): httpx.Response(
                    200, json={"exactPost": None, "similarPosts": [{"distance": 0.2}]}
                )
            }
        )

        result = await client.reverse_search("tok")

        assert not result.is_duplicate
        assert len(result.similar_posts) == 1

    @pytest.mark.asyncio
    async def test_search_posts_requests_only_needed_fields(self):
        client, recorder = make_client(
            {
                ("GET", "/api/posts/"): httpx.Response(
                    200,
                    json={
                        "query": "cat",
                        "offset": 0,
                        "limit": 50,
                        "total": 1,
                        "results": [{"id": 1, "version": 4, "tags": [{"names": ["cat"]}]}],
                    },
                )
            }
        )

        page = await client.search_posts("cat", limit=50)

        assert page.total == 1
        assert page.results[0].version == 4
        assert recorder.last.url.params["fields"] == "id,version,tags"
        assert recorder.last.url.params["limit"] == "50"


class TestTags:
    @pytest.mark.asyncio
    async def test_get_tag_quotes_the_name(self):
        client, recorder = make_client(
            {
                ("GET", "/api/tag/host:U-x"): httpx.Response(
                    200, json={"names": ["host:U-x"], "category": "Host", "version": 2}
                )
            }
        )

        tag = await client.get_tag("host:U-x")

        assert tag.name == "host:U-x"
        assert tag.version == 2
        assert recorder.last.url.raw_path == b"/api/tag/host%3AU-x"

    @pytest.mark.asyncio
    async def test_update_tag_sends_version(self):
        client, recorder = make_client(
            {
                ("PUT", "/api/tag/U-alice"): httpx.Response(
                    200, json={"names": ["U-alice"], "category": "User", "version": 3}
                )
            }
        )

        await client.update_tag("U-alice", category="User", version=2)

        assert json.loads(recorder.last.content) == {"category": "User", "version": 2}

    @pytest.mark.asyncio
    async def test_conflict_raises_remote_call_failed(self):
        client, _ = make_client(
            {("PUT", "/api/tag/U-alice"): httpx.Response(409, text="Someone else modified this")}
        )

        with pytest.raises(RemoteCallFailed) as exc_info:
            await client.update_tag("U-alice", category="User", version=1)

        assert exc_info.value.is_conflict
        assert exc_info.value.endpoint == "tag/U-alice"

    @pytest.mark.asyncio
    async def test_delete_tag_with_empty_body(self):
        client, recorder = make_client(
            {("DELETE", "/api/tag/texture_asset"): httpx.Response(200)}
        )

        await client.delete_tag("texture_asset", version=1)

        assert json.loads(recorder.last.content) == {"version": 1}

    @pytest.mark.asyncio
    async def test_list_and_create_categories(self):
        client, recorder = make_client(
            {
                ("GET", "/api/tag-categories/"): httpx.Response(
                    200, json={"results": [{"name": "default", "color": "default", "order": 0}]}
                ),
                ("POST", "/api/tag-categories/"): httpx.Response(
                    200, json={"name": "User", "color": "default", "order": 1, "version": 1}
                ),
            }
        )

        categories = await client.list_tag_categories()
        created = await client.create_tag_category("User", color="default", order=1)

        assert [c.name for c in categories] == ["default"]
        assert created.order == 1
        assert json.loads(recorder.last.content) == {"name": "User", "color": "default", "order": 1}

    @pytest.mark.asyncio
    async def test_search_tags_passes_query_and_paging(self):
        client, recorder = make_client(
            {
                ("GET", "/api/tags/"): httpx.Response(
                    200,
                    json={
                        "query": "U-*",
                        "offset": 100,
                        "limit": 100,
                        "total": 101,
                        "results": [{"names": ["U-zed"], "category": "default", "version": 1}],
                    },
                )
            }
        )

        page = await client.search_tags("U-* -category:User", limit=100, offset=100)

        assert page.results[0].name == "U-zed"
        params = recorder.last.url.params
        assert params["query"] == "U-* -category:User"
        assert params["offset"] == "100"
        assert params["fields"] == "names,category,version"


@pytest.mark.asyncio
async def test_transport_error_is_external_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = OxibooruClient(
        httpx.AsyncClient(base_url="http://board.test/api/", transport=httpx.MockTransport(handler))
    )

    with pytest.raises(ExternalServiceError):
        await client.list_tag_categories()


class TestUnexpectedBodies:
    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client, _ = make_client(
            {("POST", "/api/uploads/"): httpx.Response(200, text="<html>proxy page</html>")}
        )

        with pytest.raises(UnexpectedResponse) as exc_info:
            await client.upload_content("https://assets.resonite.com/abc")

        assert exc_info.value.endpoint == "uploads/"

    @pytest.mark.asyncio
    async def test_upload_without_token(self):
        client, _ = make_client({("POST", "/api/uploads/"): httpx.Response(200, json={})})

        with pytest.raises(UnexpectedResponse):
            await client.upload_content("https://assets.resonite.com/abc")

    @pytest.mark.asyncio
    async def test_post_of_wrong_shape(self):
        client, _ = make_client(
            {("POST", "/api/posts/"): httpx.Response(200, json={"id": "not a number"})}
        )

        with pytest.raises(UnexpectedResponse):
            await client.create_post(["cat"], "tok", "https://src", Safety.SAFE)

    @pytest.mark.asyncio
    async def test_json_array_instead_of_object(self):
        client, _ = make_client({("GET", "/api/tag-categories/"): httpx.Response(200, json=[])})

        with pytest.raises(ExternalServiceError):
            await client.list_tag_categories()
