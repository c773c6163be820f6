"""Port for the platform the screenshots are imported from."""

from abc import abstractmethod
from typing import Protocol

from resobooru.domain.importer.model.value import ResoniteSession
from resobooru.domain.photo.model.value import RawRecord
from resobooru.domain.shared.port import Port


class PhotoSource(Port, Protocol):
    """Lists, downloads and deletes inventory records."""

    @abstractmethod
    async def list_records(self, session: ResoniteSession, path: str) -> list[RawRecord]: ...

    @abstractmethod
    async def fetch_asset(self, url: str) -> bytes: ...

    @abstractmethod
    async def delete_record(self, session: ResoniteSession, record_id: str) -> None: ...
