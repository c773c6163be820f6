"""Schema of the decoded asset container.

Only the shapes needed to find photo components are modelled. Field aliases
follow the container's own key names; anything else in the document is ignored.
"""

from typing import Any

from pydantic import Field

from resobooru.domain.shared.model.value import ValueObject


class ComponentRecord(ValueObject):
    """A typed component attached to a slot.

    ``type_ref`` is an index into the document type table, or a literal type
    name in legacy documents that carry no type table.
    """

    type_ref: int | str = Field(alias="Type")
    data: dict[str, Any] = Field(default_factory=dict, alias="Data")


class ComponentList(ValueObject):
    data: tuple[ComponentRecord, ...] = Field(default=(), alias="Data")


class Slot(ValueObject):
    """A node of the scene graph stored in the container."""

    children: tuple["Slot", ...] = Field(default=(), alias="Children")
    components: ComponentList = Field(default_factory=ComponentList, alias="Components")


class AssetDocument(ValueObject):
    types: tuple[str, ...] | None = Field(default=None, alias="Types")
    root: Slot = Field(alias="Object")

    @property
    def is_legacy(self) -> bool:
        """Legacy documents predate the type table."""
        return self.types is None

    def candidate_components(self) -> tuple[ComponentRecord, ...]:
        """Components of the first child slot, falling back to the root slot."""
        if self.root.children:
            return self.root.children[0].components.data
        return self.root.components.data
