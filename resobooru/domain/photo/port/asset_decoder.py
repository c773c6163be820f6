"""Port for turning downloaded container bytes into an AssetDocument."""

from abc import abstractmethod
from typing import Protocol

from resobooru.domain.photo.model.document import AssetDocument
from resobooru.domain.shared.port import Port


class AssetDecoder(Port, Protocol):
    """Decodes a raw container blob."""

    @abstractmethod
    def decode(self, blob: bytes, record_id: str | None = None) -> AssetDocument:
        """Raises DecodeError if the blob is empty, corrupt, or of the wrong shape."""
        ...
