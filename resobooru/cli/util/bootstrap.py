"""Shared start-up for CLI commands: configuration, logging, tracing."""

import sys

import logfire
from pydantic import ValidationError

from resobooru.cli.console import get_console
from resobooru.config import Config, configure_logging
from resobooru.domain.shared.error import ConfigurationError


def load_config() -> Config:
    """Load configuration and set up logging, exiting with status 1 on bad config."""
    console = get_console()
    try:
        config = Config()  # type: ignore[call-arg]
    except ValidationError as e:
        console.error(
            f"Invalid configuration: {e}",
            hint="Check RESOBOORU_* environment variables and RESOBOORU_CONFIG_FILE",
        )
        sys.exit(1)

    configure_logging(config.logging)
    logfire.configure(send_to_logfire="if-token-present", service_name="resobooru", console=False)
    logfire.instrument_httpx()
    return config


def require_resonite_credentials(config: Config) -> None:
    """Raises ConfigurationError if the Resonite login settings are incomplete."""
    missing = [
        name
        for name, value in (
            ("username", config.resonite.username),
            ("password", config.resonite.password.get_secret_value()),
            ("machine_id", config.resonite.machine_id),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing Resonite settings: {', '.join(missing)} "
            f"(set RESOBOORU_RESONITE__{missing[0].upper()})"
        )
