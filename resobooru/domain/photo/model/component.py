"""Component kinds and the rules that resolve them."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import Field

from resobooru.domain.photo.model.document import ComponentRecord
from resobooru.domain.shared.model.value import ValueObject

IMAGE_TYPE_NAME = "[FrooxEngine]FrooxEngine.StaticTexture2D"
METADATA_TYPE_NAME = "[FrooxEngine]FrooxEngine.PhotoMetadata"


class ComponentKind(StrEnum):
    """The two component kinds a screenshot is made of."""

    IMAGE = "image"
    METADATA = "metadata"


MODERN_TYPE_NAMES: dict[ComponentKind, str] = {
    ComponentKind.IMAGE: IMAGE_TYPE_NAME,
    ComponentKind.METADATA: METADATA_TYPE_NAME,
}


class LegacyPhotoSystem(ValueObject):
    """A pre-type-table photo system, recognised by a tag it leaves on records.

    Example:
        LegacyPhotoSystem(
            trigger_tag="camera_photo",
            image_types={"FrooxEngine.StaticTexture2D"},
            metadata_types={"FrooxEngine.PhotoMetadata"},
        )
    """

    trigger_tag: str
    image_types: frozenset[str] = Field(alias="staticTexture2D")
    metadata_types: frozenset[str] = Field(alias="photoMetadata")

    def applies_to(self, tags: tuple[str, ...] | list[str]) -> bool:
        return self.trigger_tag in tags

    def kind_of(self, type_ref: int | str) -> ComponentKind | None:
        if not isinstance(type_ref, str):
            return None
        if type_ref in self.image_types:
            return ComponentKind.IMAGE
        if type_ref in self.metadata_types:
            return ComponentKind.METADATA
        return None


def modern_kind_of(type_ref: int | str, types: tuple[str, ...]) -> ComponentKind | None:
    """Resolve a component type index against the document type table."""
    if isinstance(type_ref, bool) or not isinstance(type_ref, int):
        return None
    for kind, name in MODERN_TYPE_NAMES.items():
        if name in types and types.index(name) == type_ref:
            return kind
    return None


@dataclass(frozen=True)
class LocatedComponents:
    """The image-reference and photo-metadata components of one screenshot."""

    image: ComponentRecord
    metadata: ComponentRecord
