"""Configuration for the Oxibooru board."""

import base64

from pydantic import BaseModel, SecretStr


class OxibooruConfig(BaseModel):
    """Board instance and API credentials."""

    instance: str = "http://localhost:8080"  # Base URL, without the /api suffix
    user: str = ""
    token: SecretStr = SecretStr("")
    timeout: float = 30.0

    @property
    def api_url(self) -> str:
        return f"{self.instance.rstrip('/')}/api/"

    @property
    def authorization(self) -> str:
        credentials = f"{self.user}:{self.token.get_secret_value()}".encode()
        return f"Token {base64.b64encode(credentials).decode()}"
