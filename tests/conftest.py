"""Global test fixtures."""

import fnmatch
import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

import pytest

from resobooru.domain.category.model.value import (
    PostSummary,
    PostTag,
    RemoteTag,
    SearchPage,
    TagCategory,
)
from resobooru.domain.photo.model.component import IMAGE_TYPE_NAME, METADATA_TYPE_NAME
from resobooru.domain.photo.model.value import (
    AccessLevel,
    Camera,
    Location,
    PhotoMetadata,
    RawRecord,
)
from resobooru.domain.shared.error import RemoteCallFailed

TAKEN_AT = datetime(2024, 1, 1, 12, 30, 15, 123000, tzinfo=UTC)


def _user(user_id: str) -> dict[str, Any]:
    return {"_userId": {"Data": user_id}}


@pytest.fixture
def metadata_component_data() -> Callable[..., dict[str, Any]]:
    """Factory for the Data tree of a PhotoMetadata component."""

    def build(
        location_name: str = "TestWorld",
        host: str = "U-host",
        access_level: str = "Anyone",
        hidden: bool = False,
        taken_by: str = "U-photographer",
        app_version: str = "2024.1.2.3",
        user_ids: Sequence[str] = ("U-alice", "U-bob"),
        taken_at: datetime = TAKEN_AT,
    ) -> dict[str, Any]:
        return {
            "LocationName": {"Data": location_name},
            "LocationHost": _user(host),
            "LocationAccessLevel": {"Data": access_level},
            "LocationHiddenFromListing": {"Data": hidden},
            "TimeTaken": {"Data": taken_at},
            "TakenBy": _user(taken_by),
            "AppVersion": {"Data": app_version},
            "UserInfos": {"Data": [{"User": _user(user_id)} for user_id in user_ids]},
            "CameraFOV": {"Data": 60.0},
            "CameraModel": {"Data": "Interactive Camera"},
            "CameraManufacturer": {"Data": "Frooxius"},
        }

    return build


@pytest.fixture
def image_component_data() -> dict[str, Any]:
    return {"URL": {"Data": "@resdb:///0123abcd.webp"}}


@pytest.fixture
def typed_document(
    metadata_component_data: Callable[..., dict[str, Any]],
    image_component_data: dict[str, Any],
) -> Callable[..., dict[str, Any]]:
    """Factory for a container document with a type table."""

    def build(under_child: bool = True, **metadata: Any) -> dict[str, Any]:
        components = {
            "Data": [
                {"Type": 0, "Data": {"Enabled": {"Data": True}}},
                {"Type": 1, "Data": image_component_data},
                {"Type": 2, "Data": metadata_component_data(**metadata)},
            ]
        }
        document: dict[str, Any] = {
            "Types": [
                "[FrooxEngine]FrooxEngine.Grabbable",
                IMAGE_TYPE_NAME,
                METADATA_TYPE_NAME,
            ],
        }
        if under_child:
            document["Object"] = {
                "Children": [{"Children": [], "Components": components}],
                "Components": {"Data": []},
            }
        else:
            document["Object"] = {"Children": [], "Components": components}
        return document

    return build


@pytest.fixture
def legacy_document(
    metadata_component_data: Callable[..., dict[str, Any]],
    image_component_data: dict[str, Any],
) -> Callable[..., dict[str, Any]]:
    """Factory for a container document without a type table."""

    def build(**metadata: Any) -> dict[str, Any]:
        return {
            "Object": {
                "Children": [
                    {
                        "Children": [],
                        "Components": {
                            "Data": [
                                {"Type": "FrooxEngine.Grabbable", "Data": {}},
                                {"Type": "FrooxEngine.StaticTexture2D", "Data": image_component_data},
                                {
                                    "Type": "FrooxEngine.PhotoMetadata",
                                    "Data": metadata_component_data(**metadata),
                                },
                            ]
                        },
                    }
                ],
                "Components": {"Data": []},
            }
        }

    return build


@pytest.fixture
def make_metadata() -> Callable[..., PhotoMetadata]:
    """Factory for normalized PhotoMetadata."""

    def build(
        location_name: str = "TestWorld",
        host: str = "U-host",
        access_level: AccessLevel = AccessLevel.ANYONE,
        hidden: bool = False,
        taken_by: str = "U-photographer",
        app_version: str = "2024.1.2.3",
        user_ids: Sequence[str] = ("U-alice", "U-bob"),
        taken_at: datetime = TAKEN_AT,
    ) -> PhotoMetadata:
        return PhotoMetadata(
            location=Location(
                name=location_name,
                host=host,
                access_level=access_level,
                hidden_from_listing=hidden,
            ),
            time_taken=taken_at,
            taken_by=taken_by,
            app_version=app_version,
            user_ids=frozenset(user_ids),
            camera=Camera(fov=60.0, model="Interactive Camera", manufacturer="Frooxius"),
            asset_url="https://assets.resonite.com/0123abcd",
        )

    return build


@pytest.fixture
def make_record() -> Callable[..., RawRecord]:
    def build(
        record_id: str = "R-1",
        name: str = "Photo in TestWorld",
        tags: Sequence[str] = (),
        asset_uri: str | None = "resdb:///feedbeef.brson",
        record_type: str = "object",
        owner_id: str = "U-owner",
    ) -> RawRecord:
        return RawRecord(
            id=record_id,
            name=name,
            tags=tuple(tags),
            assetUri=asset_uri,
            ownerId=owner_id,
            recordType=record_type,
        )

    return build


class FakeTagStore:
    """In-memory board implementing the TagStore port.

    Versions increase on every write; writes with a stale version fail with
    409, unknown tags with 404, like the real API.
    """

    def __init__(self) -> None:
        self.tags: dict[str, RemoteTag] = {}
        self.categories: list[TagCategory] = []
        self.posts: dict[int, PostSummary] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail: dict[str, int] = {}  # method name -> status to fail with once

    def add_tag(self, name: str, category: str | None = "default") -> RemoteTag:
        tag = RemoteTag(names=(name,), category=category, version=1)
        self.tags[name] = tag
        return tag

    def add_post(self, post_id: int, tags: Sequence[str]) -> PostSummary:
        post = PostSummary(
            id=post_id, version=1, tags=tuple(PostTag(names=(tag,)) for tag in tags)
        )
        self.posts[post_id] = post
        for tag in tags:
            if tag not in self.tags:
                self.add_tag(tag)
        return post

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _maybe_fail(self, method: str) -> None:
        status = self.fail.pop(method, None)
        if status is not None:
            raise RemoteCallFailed(method, status, "injected failure")

    def _tag(self, name: str, method: str) -> RemoteTag:
        if name not in self.tags:
            raise RemoteCallFailed(method, 404, f"Tag {name!r} not found")
        return self.tags[name]

    async def list_tag_categories(self) -> list[TagCategory]:
        self.calls.append(("list_tag_categories", None))
        self._maybe_fail("list_tag_categories")
        return list(self.categories)

    async def create_tag_category(self, name: str, color: str, order: int) -> TagCategory:
        self.calls.append(("create_tag_category", name))
        self._maybe_fail("create_tag_category")
        category = TagCategory(name=name, color=color, order=order, version=1)
        self.categories.append(category)
        return category

    async def get_tag(self, name: str) -> RemoteTag:
        self.calls.append(("get_tag", name))
        self._maybe_fail("get_tag")
        return self._tag(name, "get_tag")

    async def update_tag(self, name: str, category: str, version: int | None) -> RemoteTag:
        self.calls.append(("update_tag", name))
        self._maybe_fail("update_tag")
        tag = self._tag(name, "update_tag")
        if version != tag.version:
            raise RemoteCallFailed("update_tag", 409, "Someone else modified this")
        updated = tag.model_copy(update={"category": category, "version": tag.version + 1})
        self.tags[name] = updated
        return updated

    async def delete_tag(self, name: str, version: int | None) -> None:
        self.calls.append(("delete_tag", name))
        self._maybe_fail("delete_tag")
        tag = self._tag(name, "delete_tag")
        if version != tag.version:
            raise RemoteCallFailed("delete_tag", 409, "Someone else modified this")
        del self.tags[name]
        for post_id, post in self.posts.items():
            remaining = tuple(t for t in post.tags if t.names[0] != name)
            self.posts[post_id] = post.model_copy(update={"tags": remaining})

    async def search_tags(self, query: str, limit: int, offset: int = 0) -> SearchPage[RemoteTag]:
        self.calls.append(("search_tags", query))
        self._maybe_fail("search_tags")
        matches = [tag for name, tag in sorted(self.tags.items()) if _matches(query, tag)]
        return SearchPage[RemoteTag](
            query=query,
            offset=offset,
            limit=limit,
            total=len(matches),
            results=tuple(matches[offset : offset + limit]),
        )

    async def search_posts(
        self, query: str, limit: int, offset: int = 0
    ) -> SearchPage[PostSummary]:
        self.calls.append(("search_posts", query))
        self._maybe_fail("search_posts")
        wanted = query.replace("\\", "")
        matches = [post for _, post in sorted(self.posts.items()) if wanted in post.tag_names]
        return SearchPage[PostSummary](
            query=query,
            offset=offset,
            limit=limit,
            total=len(matches),
            results=tuple(matches[offset : offset + limit]),
        )

    async def update_post_tags(
        self, post_id: int, tags: Sequence[str], version: int
    ) -> PostSummary:
        self.calls.append(("update_post_tags", post_id))
        self._maybe_fail("update_post_tags")
        post = self.posts[post_id]
        if version != post.version:
            raise RemoteCallFailed("update_post_tags", 409, "Someone else modified this")
        for tag in tags:
            if tag not in self.tags:
                self.add_tag(tag)
        updated = PostSummary(
            id=post_id,
            version=post.version + 1,
            tags=tuple(PostTag(names=(tag,)) for tag in dict.fromkeys(tags)),
        )
        self.posts[post_id] = updated
        return updated


def _unescape(term: str) -> str:
    return re.sub(r"\\(.)", r"\1", term)


def _matches(query: str, tag: RemoteTag) -> bool:
    """Tiny subset of the board query syntax: ``pattern [-category:name]``."""
    pattern, *filters = re.split(r"(?<!\\) ", query)
    for term in filters:
        if term.startswith("-category:"):
            if tag.category == _unescape(term.removeprefix("-category:")):
                return False
    return fnmatch.fnmatchcase(tag.name, pattern.replace("\\", ""))


@pytest.fixture
def tag_store() -> FakeTagStore:
    return FakeTagStore()
