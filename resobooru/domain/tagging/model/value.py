"""Tagging value objects."""

from collections.abc import Iterable
from enum import StrEnum

from resobooru.domain.photo.model.value import PhotoMetadata
from resobooru.domain.shared.model.value import ValueObject

HIDDEN_SESSION_TAG = "hiddenSession"


class Safety(StrEnum):
    SAFE = "safe"
    SKETCHY = "sketchy"
    UNSAFE = "unsafe"


def sanitize_tag(tag: str) -> str:
    """Board tags cannot contain spaces."""
    return tag.replace(" ", "_")


class TagSet(ValueObject):
    """Deduplicated, space-free tags plus the safety rating of a post."""

    tags: frozenset[str]
    safety: Safety

    def __contains__(self, tag: object) -> bool:
        return tag in self.tags

    def __len__(self) -> int:
        return len(self.tags)

    def sorted(self) -> list[str]:
        return sorted(self.tags)


class TagBucket(StrEnum):
    """Logical groups of derived tags; each can be mapped to a board category."""

    USERS = "users"
    HOST = "host"
    ACCESS_LEVEL = "accessLevel"
    SAVED_BY = "savedBy"
    TAKEN_BY = "takenBy"
    SESSION_NAME = "sessionName"
    HIDDEN = "hidden"
    DATE_TAKEN = "dateTaken"
    IMPORTER_VERSION = "importerVersion"
    GAME_VERSION = "gameVersion"


class TagBuckets:
    """Collects the derived tags of many photos, grouped by bucket."""

    def __init__(self, importer_version: str) -> None:
        self._tags: dict[TagBucket, set[str]] = {bucket: set() for bucket in TagBucket}
        self._tags[TagBucket.HIDDEN].add(HIDDEN_SESSION_TAG)
        self._tags[TagBucket.IMPORTER_VERSION].add(importer_version)

    @classmethod
    def from_photos(
        cls, photos: Iterable[tuple[str, PhotoMetadata]], importer_version: str
    ) -> "TagBuckets":
        """Build buckets from ``(owner_id, metadata)`` pairs."""
        buckets = cls(importer_version)
        for owner_id, metadata in photos:
            buckets.add(owner_id, metadata)
        return buckets

    def add(self, owner_id: str, metadata: PhotoMetadata) -> None:
        location = metadata.location
        self._extend(TagBucket.USERS, metadata.user_ids)
        self._extend(TagBucket.HOST, [location.host, f"host:{location.host}"])
        self._extend(
            TagBucket.ACCESS_LEVEL,
            [location.access_level, f"accessLevel:{location.access_level}"],
        )
        self._extend(TagBucket.SAVED_BY, [f"savedBy:{owner_id}"])
        self._extend(TagBucket.TAKEN_BY, [f"takenBy:{metadata.taken_by}"])
        self._extend(
            TagBucket.SESSION_NAME, [location.name, f"sessionName:{location.name}"]
        )
        self._extend(TagBucket.DATE_TAKEN, [metadata.date_taken])
        self._extend(
            TagBucket.GAME_VERSION, [metadata.app_version, metadata.base_app_version]
        )

    def _extend(self, bucket: TagBucket, tags: Iterable[str | None]) -> None:
        self._tags[bucket].update(sanitize_tag(tag) for tag in tags if tag)

    def get(self, bucket: TagBucket | str) -> frozenset[str]:
        return frozenset(self._tags[TagBucket(bucket)])

    def items(self) -> list[tuple[TagBucket, frozenset[str]]]:
        return [(bucket, frozenset(tags)) for bucket, tags in self._tags.items()]
