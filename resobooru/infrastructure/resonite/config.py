"""Configuration for the Resonite source."""

from pydantic import BaseModel, Field, SecretStr

from resobooru.domain.photo.model.component import LegacyPhotoSystem


class ResoniteConfig(BaseModel):
    """Resonite account and inventory settings.

    Credentials are usually supplied through the environment
    (RESOBOORU_RESONITE__USERNAME, RESOBOORU_RESONITE__PASSWORD,
    RESOBOORU_RESONITE__MACHINE_ID).
    """

    username: str = ""
    password: SecretStr = SecretStr("")
    machine_id: str = ""  # Sent as the UID header on login
    api_url: str = "https://api.resonite.com"
    asset_base_url: str = "https://assets.resonite.com/"
    photo_location: str = r"Inventory\Photos"  # Inventory path holding the screenshots
    legacy_photo_systems: list[LegacyPhotoSystem] = Field(default_factory=list)
