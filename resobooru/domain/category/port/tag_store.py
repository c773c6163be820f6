"""Port for the board's tag, category and post APIs used by category upkeep."""

from abc import abstractmethod
from collections.abc import Sequence
from typing import Protocol

from resobooru.domain.category.model.value import (
    PostSummary,
    RemoteTag,
    SearchPage,
    TagCategory,
)
from resobooru.domain.shared.port import Port


class TagStore(Port, Protocol):
    """Remote tag store.

    Every method raises RemoteCallFailed on a non-success response. Callers
    decide whether that means "no result", "skip" or "retry".
    """

    @abstractmethod
    async def list_tag_categories(self) -> list[TagCategory]: ...

    @abstractmethod
    async def create_tag_category(self, name: str, color: str, order: int) -> TagCategory: ...

    @abstractmethod
    async def get_tag(self, name: str) -> RemoteTag: ...

    @abstractmethod
    async def update_tag(self, name: str, category: str, version: int | None) -> RemoteTag: ...

    @abstractmethod
    async def delete_tag(self, name: str, version: int | None) -> None: ...

    @abstractmethod
    async def search_tags(
        self, query: str, limit: int, offset: int = 0
    ) -> SearchPage[RemoteTag]: ...

    @abstractmethod
    async def search_posts(
        self, query: str, limit: int, offset: int = 0
    ) -> SearchPage[PostSummary]: ...

    @abstractmethod
    async def update_post_tags(
        self, post_id: int, tags: Sequence[str], version: int
    ) -> PostSummary: ...
