"""Photo domain value objects."""

import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated

from pydantic import Field, StringConstraints

from resobooru.domain.shared.model.value import ValueObject

PHOTO_NAME_PREFIX = "Photo in "
CONTAINER_EXTENSION = ".brson"
OBJECT_RECORD_TYPE = "object"

# major.minor.patch.build with an optional "+suffix" for modded clients
APP_VERSION_PATTERN = r"^\d+\.\d+\.\d+\.\d+(\+.+)?$"

UserId = Annotated[str, StringConstraints(min_length=1)]
AppVersion = Annotated[str, StringConstraints(pattern=APP_VERSION_PATTERN)]

_MARKUP = re.compile(r"<[^>]+>")


def strip_markup(text: str) -> str:
    """Remove rich-text markup such as ``<color=red>`` or ``</b>``."""
    return _MARKUP.sub("", text)


class AccessLevel(StrEnum):
    """Session access level at the time the photo was taken."""

    ANYONE = "Anyone"
    REGISTERED_USERS = "RegisteredUsers"
    FRIENDS_OF_FRIENDS = "FriendsOfFriends"
    PRIVATE = "Private"
    CONTACTS = "Contacts"


class RawRecord(ValueObject):
    """An inventory record as listed by the Resonite API."""

    id: str
    name: str
    tags: tuple[str, ...] = ()
    asset_uri: str | None = Field(default=None, alias="assetUri")
    owner_id: str = Field(alias="ownerId")
    record_type: str = Field(alias="recordType")

    @property
    def is_photo_candidate(self) -> bool:
        """Whether the record looks like a screenshot stored as a container asset."""
        return (
            self.asset_uri is not None
            and CONTAINER_EXTENSION in self.asset_uri
            and self.record_type == OBJECT_RECORD_TYPE
            and self.name.startswith(PHOTO_NAME_PREFIX)
        )

    def asset_url(self, asset_base_url: str) -> str:
        """Public download URL of the record's container asset."""
        if self.asset_uri is None:
            raise ValueError(f"Record {self.id} has no asset URI")
        url = self.asset_uri.replace("resdb:///", asset_base_url, 1)
        return url.removesuffix(CONTAINER_EXTENSION)


class Location(ValueObject):
    """The session a photo was taken in."""

    name: str
    host: UserId
    access_level: AccessLevel
    hidden_from_listing: bool


class Camera(ValueObject):
    fov: float
    model: str
    manufacturer: str


class PhotoMetadata(ValueObject):
    """Normalized metadata of a single screenshot.

    Every field is required; construction fails rather than yielding a
    partially filled record.
    """

    location: Location
    time_taken: datetime
    taken_by: UserId
    app_version: AppVersion
    user_ids: frozenset[UserId]
    camera: Camera
    asset_url: str

    @property
    def date_taken(self) -> str:
        """ISO calendar date (UTC) the photo was taken on."""
        taken = self.time_taken
        if taken.tzinfo is not None:
            taken = taken.astimezone(UTC)
        return taken.date().isoformat()

    @property
    def base_app_version(self) -> str | None:
        """Version without the modded-client suffix, if one is present."""
        if "+" not in self.app_version:
            return None
        return self.app_version.split("+", 1)[0]
