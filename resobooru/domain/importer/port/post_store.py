"""Port for creating posts on the board."""

from abc import abstractmethod
from collections.abc import Sequence
from typing import Protocol

from resobooru.domain.category.model.value import PostSummary
from resobooru.domain.importer.model.value import ReverseSearchResult
from resobooru.domain.shared.port import Port
from resobooru.domain.tagging.model.value import Safety


class PostStore(Port, Protocol):
    """Board post APIs. Raises RemoteCallFailed on a non-success response."""

    @abstractmethod
    async def upload_content(self, content_url: str) -> str:
        """Have the board fetch ``content_url``; returns the content token."""
        ...

    @abstractmethod
    async def reverse_search(self, content_token: str) -> ReverseSearchResult: ...

    @abstractmethod
    async def create_post(
        self,
        tags: Sequence[str],
        content_token: str,
        source: str,
        safety: Safety,
    ) -> PostSummary: ...
