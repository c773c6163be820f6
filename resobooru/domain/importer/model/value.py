"""Import value objects."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from resobooru.domain.category.model.value import PostSummary
from resobooru.domain.photo.model.value import PhotoMetadata
from resobooru.domain.shared.model.value import ValueObject
from resobooru.domain.tagging.model.value import TagSet


class ResoniteSession(ValueObject):
    """Credentials of a logged-in Resonite user.

    Passed explicitly to every call that acts on the user's inventory.
    """

    user_id: str
    token: str

    @property
    def authorization(self) -> str:
        return f"res {self.user_id}:{self.token}"


class ReverseSearchResult(ValueObject):
    exact_post: PostSummary | None = None
    similar_posts: tuple[dict, ...] = ()

    @property
    def is_duplicate(self) -> bool:
        return self.exact_post is not None


class ImportStatus(StrEnum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    NOT_AN_IMAGE = "not_an_image"
    SKIPPED = "skipped"
    FAILED = "failed"


ON_BOARD = frozenset({ImportStatus.CREATED, ImportStatus.DUPLICATE})


@dataclass
class RecordOutcome:
    """What happened to one inventory record."""

    record_id: str
    status: ImportStatus
    owner_id: str
    metadata: PhotoMetadata | None = None
    tag_set: TagSet | None = None
    reason: str | None = None


@dataclass
class ImportResult:
    """Result of an import run."""

    record_count: int
    started_at: datetime
    completed_at: datetime
    outcomes: list[RecordOutcome] = field(default_factory=list)

    def count(self, status: ImportStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def photos(self) -> list[tuple[str, PhotoMetadata]]:
        """``(owner_id, metadata)`` of every photo that is on the board after the run."""
        return [
            (outcome.owner_id, outcome.metadata)
            for outcome in self.outcomes
            if outcome.metadata is not None and outcome.status in ON_BOARD
        ]
