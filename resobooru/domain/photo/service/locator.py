"""Finds the image and metadata components inside a decoded container."""

import logging
from collections.abc import Callable, Sequence

from resobooru.domain.photo.model.component import (
    ComponentKind,
    LegacyPhotoSystem,
    LocatedComponents,
    modern_kind_of,
)
from resobooru.domain.photo.model.document import AssetDocument, ComponentRecord
from resobooru.domain.shared.error import UnknownImageSystem

logger = logging.getLogger(__name__)

KindResolver = Callable[[int | str], ComponentKind | None]


def _find(
    components: Sequence[ComponentRecord], resolve: KindResolver
) -> dict[ComponentKind, ComponentRecord]:
    found: dict[ComponentKind, ComponentRecord] = {}
    for component in components:
        kind = resolve(component.type_ref)
        if kind is not None and kind not in found:
            found[kind] = component
    return found


def _complete(found: dict[ComponentKind, ComponentRecord]) -> LocatedComponents | None:
    if ComponentKind.IMAGE in found and ComponentKind.METADATA in found:
        return LocatedComponents(
            image=found[ComponentKind.IMAGE],
            metadata=found[ComponentKind.METADATA],
        )
    return None


class ComponentLocator:
    """Resolves the two photo components under the modern or the legacy layout.

    Modern documents carry a type table and components reference it by index.
    Legacy documents have no table; their components carry literal type names,
    and the photo system that produced them is guessed from the record tags.
    """

    def __init__(self, legacy_systems: Sequence[LegacyPhotoSystem] = ()) -> None:
        self._legacy_systems = tuple(legacy_systems)

    def locate(
        self,
        document: AssetDocument,
        record_tags: Sequence[str] = (),
        record_id: str | None = None,
    ) -> LocatedComponents | None:
        """Locate the image-reference and photo-metadata components.

        Args:
            document: The decoded container.
            record_tags: Tags of the inventory record, used for legacy detection.
            record_id: Only used for error reporting.

        Returns:
            The located components, or None if the document has no components
            at all (the record is not an image).

        Raises:
            UnknownImageSystem: If components exist but the pair cannot be found.
        """
        components = document.candidate_components()
        if not components:
            return None

        if document.types is not None:
            types = document.types
            located = _complete(_find(components, lambda ref: modern_kind_of(ref, types)))
        else:
            located = self._locate_legacy(components, tuple(record_tags))

        if located is None:
            raise UnknownImageSystem(
                "Not a known image system or not a screenshot", record_id=record_id
            )
        return located

    def _locate_legacy(
        self, components: Sequence[ComponentRecord], tags: tuple[str, ...]
    ) -> LocatedComponents | None:
        for system in self._legacy_systems:
            if not system.applies_to(tags):
                continue
            located = _complete(_find(components, system.kind_of))
            if located is not None:
                logger.debug(f"Matched legacy photo system '{system.trigger_tag}'")
                return located
        return None
