import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from resobooru import __version__
from resobooru.infrastructure.oxibooru.config import OxibooruConfig
from resobooru.infrastructure.resonite.config import ResoniteConfig


# =============================================================================
# Import Configuration
# =============================================================================


class ImportConfig(BaseModel):
    """Behaviour of the per-record import."""

    concurrency: int = Field(default=4, ge=1)  # Records processed in parallel
    delete_source_pictures: bool = False  # Delete inventory records once on the board


# =============================================================================
# Category Configuration
# =============================================================================


class CategoryConfig(BaseModel):
    """Tag category upkeep.

    ``mapping`` assigns each tag bucket (users, host, accessLevel, savedBy,
    takenBy, sessionName, hidden, dateTaken, importerVersion, gameVersion) to
    the name of a board category. Buckets left out are not reconciled. The
    position of a category in the mapping is its display order on the board.
    """

    enabled: bool = False
    mapping: dict[str, str] = {}
    max_retries: int = Field(default=3, ge=0)  # Retries after a stale version token
    concurrency: int = Field(default=8, ge=1)


class MigrationConfig(BaseModel):
    """One-shot cleanup of tags written by older importer versions."""

    enabled: bool = False
    page_size: int = Field(default=100, ge=1)  # Results per search request
    max_pages: int = Field(default=10, ge=1)  # Search requests per query and run


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by RESOBOORU_CONFIG_FILE env var."""

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("RESOBOORU_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from RESOBOORU_LOG_FILE env var."""
        return os.environ.get("RESOBOORU_LOG_FILE")


class Config(BaseSettings):
    resonite: ResoniteConfig = ResoniteConfig()
    oxibooru: OxibooruConfig = OxibooruConfig()
    importer: ImportConfig = ImportConfig()
    categories: CategoryConfig = CategoryConfig()
    migrations: MigrationConfig = MigrationConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="RESOBOORU_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows RESOBOORU_OXIBOORU__TOKEN override
        extra="ignore",
    )

    @property
    def version(self) -> str:
        """Importer version, also added as a tag to every post."""
        return __version__

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - RESOBOORU_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so that all loggers pick
    up the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
