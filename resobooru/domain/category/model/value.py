"""Board-side value objects for tags, categories and posts."""

from typing import Generic, TypeVar

from pydantic import Field

from resobooru.domain.shared.model.value import ValueObject

T = TypeVar("T")


class TagCategory(ValueObject):
    name: str
    color: str = "default"
    order: int = 0
    version: int | None = None


class RemoteTag(ValueObject):
    """A tag as stored on the board. ``version`` is the optimistic-concurrency token."""

    names: tuple[str, ...]
    category: str | None = None
    version: int | None = None

    @property
    def name(self) -> str:
        return self.names[0]


class PostTag(ValueObject):
    names: tuple[str, ...]


class PostSummary(ValueObject):
    id: int
    version: int
    tags: tuple[PostTag, ...] = ()

    @property
    def tag_names(self) -> list[str]:
        return [tag.names[0] for tag in self.tags if tag.names]


class SearchPage(ValueObject, Generic[T]):
    """One page of a board search."""

    query: str = ""
    offset: int = 0
    limit: int = 0
    total: int = 0
    results: tuple[T, ...] = Field(default=())
