"""Derives board tags and a safety rating from a photo.

This module does no I/O; the result is a pure function of the record tags,
the normalized metadata, and the importer version.
"""

from collections.abc import Sequence

from resobooru.domain.photo.model.value import (
    AccessLevel,
    Location,
    PhotoMetadata,
    strip_markup,
)
from resobooru.domain.tagging.model.value import (
    HIDDEN_SESSION_TAG,
    Safety,
    TagSet,
    sanitize_tag,
)

# Record tags that duplicate information re-derived from the metadata.
# Only the first tag starting with each prefix is dropped.
REDUNDANT_TAG_PREFIXES = (
    "texture_asset",
    "timestamp",
    "location_accesslevel",
    "location_hiddenfromlisting",
    "location_host",
    "location_name",
)
FILLER_TAG = "in"


def derive_safety(location: Location) -> Safety:
    """Rate a post from its session visibility. Later rules override earlier ones."""
    safety = Safety.SAFE
    if location.access_level == AccessLevel.FRIENDS_OF_FRIENDS:
        safety = Safety.SKETCHY
    if location.access_level == AccessLevel.CONTACTS:
        safety = Safety.UNSAFE
    if location.access_level == AccessLevel.PRIVATE:
        safety = Safety.UNSAFE
    if location.hidden_from_listing:
        safety = Safety.UNSAFE
    return safety


def clean_record_tags(raw_tags: Sequence[str], location_name: str) -> list[str]:
    """Strip markup from record tags and drop the redundant ones."""
    tags = [strip_markup(tag) for tag in raw_tags]

    redundant: list[str] = [location_name.lower()]
    for prefix in REDUNDANT_TAG_PREFIXES:
        match = next((tag for tag in tags if tag.startswith(prefix)), None)
        if match is not None:
            redundant.append(match)
    redundant.append(FILLER_TAG)

    for tag in redundant:
        if tag in tags:
            tags.remove(tag)
    return tags


def synthesize_tags(
    raw_tags: Sequence[str],
    metadata: PhotoMetadata,
    owner_id: str,
    importer_version: str,
) -> TagSet:
    """Build the deduplicated tag set and safety rating for one photo.

    Args:
        raw_tags: Tags of the inventory record, as stored on the platform.
        metadata: Normalized photo metadata.
        owner_id: Owner of the inventory record (the user who saved the photo).
        importer_version: Version of this importer, added as a tag.
    """
    location = metadata.location
    candidates: list[str | None] = [
        *clean_record_tags(raw_tags, location.name),
        *sorted(metadata.user_ids),
        f"savedBy:{owner_id}",
        location.name,
        f"sessionName:{location.name}",
        location.host,
        f"host:{location.host}",
        location.access_level,
        f"accessLevel:{location.access_level}",
        HIDDEN_SESSION_TAG if location.hidden_from_listing else None,
        f"takenBy:{metadata.taken_by}",
        metadata.date_taken,
        importer_version,
        metadata.app_version,
        metadata.base_app_version,
    ]

    tags = frozenset(sanitize_tag(tag) for tag in candidates if tag)
    return TagSet(tags=tags, safety=derive_safety(location))
