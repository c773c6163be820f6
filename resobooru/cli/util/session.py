"""Resonite login for CLI commands, including the TOTP round trip."""

from resobooru.cli.console import Console
from resobooru.domain.importer.model.value import ResoniteSession
from resobooru.domain.shared.error import TotpRequiredError
from resobooru.infrastructure.resonite.client import ResoniteClient


async def login(client: ResoniteClient, console: Console, totp: str | None = None) -> ResoniteSession:
    """Log in, asking for a TOTP code if the account requires one.

    Raises:
        AuthenticationError: The credentials (or the TOTP code) were rejected.
    """
    try:
        return await client.login(totp=totp)
    except TotpRequiredError:
        if totp:
            raise
    console.print("2FA is required for this account.")
    code = console.prompt("Please enter your 6-digit TOTP code")
    return await client.login(totp=code)
