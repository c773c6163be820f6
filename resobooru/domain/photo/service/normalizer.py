"""Projects located photo components into a flat PhotoMetadata record."""

import re
from typing import Any

from pydantic import ValidationError

from resobooru.domain.photo.model.component import LocatedComponents
from resobooru.domain.photo.model.value import (
    Camera,
    Location,
    PhotoMetadata,
    strip_markup,
)
from resobooru.domain.shared.error import MalformedMetadata

DEFAULT_ASSET_BASE_URL = "https://assets.resonite.com/"

_FILE_EXTENSION = re.compile(r"\.[^.]+$")
_INTERNAL_ASSET_SCHEME = "@resdb:///"


class MetadataNormalizer:
    """Reshapes the raw component data trees into PhotoMetadata.

    All field paths are fixed. A missing or null field anywhere along a path
    raises MalformedMetadata naming the full dotted path.
    """

    def __init__(self, asset_base_url: str = DEFAULT_ASSET_BASE_URL) -> None:
        self._asset_base_url = asset_base_url

    def normalize(
        self, components: LocatedComponents, record_id: str | None = None
    ) -> PhotoMetadata:
        image = _Fields(components.image.data, "StaticTexture2D", record_id)
        meta = _Fields(components.metadata.data, "PhotoMetadata", record_id)

        user_infos = meta.get("UserInfos", "Data")
        if not isinstance(user_infos, list):
            raise MalformedMetadata(
                "Expected a list of user infos",
                record_id=record_id,
                path="PhotoMetadata.UserInfos.Data",
            )
        user_ids = [
            _Fields(info, f"PhotoMetadata.UserInfos.Data[{i}]", record_id).get(
                "User", "_userId", "Data"
            )
            for i, info in enumerate(user_infos)
        ]

        try:
            return PhotoMetadata(
                location=Location(
                    name=strip_markup(meta.text("LocationName", "Data")),
                    host=meta.get("LocationHost", "_userId", "Data"),
                    access_level=meta.get("LocationAccessLevel", "Data"),
                    hidden_from_listing=meta.get("LocationHiddenFromListing", "Data"),
                ),
                time_taken=meta.get("TimeTaken", "Data"),
                taken_by=meta.get("TakenBy", "_userId", "Data"),
                app_version=meta.get("AppVersion", "Data"),
                user_ids=frozenset(user_ids),
                camera=Camera(
                    fov=meta.get("CameraFOV", "Data"),
                    model=meta.get("CameraModel", "Data"),
                    manufacturer=meta.get("CameraManufacturer", "Data"),
                ),
                asset_url=self.public_asset_url(image.text("URL", "Data")),
            )
        except ValidationError as e:
            error = e.errors()[0]
            raise MalformedMetadata(
                f"Invalid photo metadata: {error['msg']}",
                record_id=record_id,
                path=".".join(str(part) for part in error["loc"]),
            ) from e

    def public_asset_url(self, internal_url: str) -> str:
        """Turn ``@resdb:///<hash>.<ext>`` into a public HTTPS URL without extension."""
        trimmed = _FILE_EXTENSION.sub("", internal_url)
        return trimmed.replace(_INTERNAL_ASSET_SCHEME, self._asset_base_url)


class _Fields:
    """Null-checked access into a nested component data tree."""

    def __init__(self, data: Any, prefix: str, record_id: str | None) -> None:
        self._data = data
        self._prefix = prefix
        self._record_id = record_id

    def get(self, *path: str) -> Any:
        node = self._data
        for depth, key in enumerate(path):
            if not isinstance(node, dict) or node.get(key) is None:
                dotted = ".".join((self._prefix, *path[: depth + 1]))
                raise MalformedMetadata(
                    f"Missing required field {dotted}",
                    record_id=self._record_id,
                    path=dotted,
                )
            node = node[key]
        return node

    def text(self, *path: str) -> str:
        value = self.get(*path)
        if not isinstance(value, str):
            dotted = ".".join((self._prefix, *path))
            raise MalformedMetadata(
                f"Expected text at {dotted}, got {type(value).__name__}",
                record_id=self._record_id,
                path=dotted,
            )
        return value
