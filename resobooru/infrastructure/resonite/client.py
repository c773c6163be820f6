"""HTTP adapter for the Resonite cloud API (login, inventory, assets)."""

import logging
import uuid

import httpx
from pydantic import ValidationError

from resobooru.domain.importer.model.value import ResoniteSession
from resobooru.domain.importer.port.photo_source import PhotoSource
from resobooru.domain.photo.model.value import RawRecord
from resobooru.domain.shared.error import (
    AuthenticationError,
    ExternalServiceError,
    RemoteCallFailed,
    TotpRequiredError,
    UnexpectedResponse,
)
from resobooru.infrastructure.resonite.config import ResoniteConfig

logger = logging.getLogger(__name__)

TOTP_CHALLENGE = "TOTP"


class ResoniteClient(PhotoSource):
    """Talks to the Resonite API on behalf of one user.

    The client itself is stateless with respect to credentials: ``login``
    returns a ResoniteSession that callers pass back in explicitly.
    """

    def __init__(self, config: ResoniteConfig, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client

    async def login(self, totp: str | None = None) -> ResoniteSession:
        """Open a user session with username and password.

        Args:
            totp: Current TOTP code for accounts with two-factor authentication.

        Raises:
            TotpRequiredError: The account needs a TOTP code and none (or a stale one) was given.
            AuthenticationError: Login was rejected.
        """
        headers = {"UID": self._config.machine_id}
        if totp and totp.strip():
            headers["TOTP"] = totp.strip()

        body = {
            "username": self._config.username,
            "authentication": {
                "$type": "password",
                "password": self._config.password.get_secret_value(),
            },
            "secretMachineId": str(uuid.uuid4()),
            "rememberMe": False,
        }
        try:
            response = await self._client.post(
                f"{self._config.api_url}/userSessions", json=body, headers=headers
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Resonite is unreachable: {e}") from e

        if not response.is_success:
            if response.text == TOTP_CHALLENGE:
                raise TotpRequiredError()
            raise AuthenticationError(
                f"Authentication failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}"
            )

        try:
            entity = response.json()["entity"]
            session = ResoniteSession(user_id=entity["userId"], token=entity["token"])
        except (ValueError, KeyError, TypeError) as e:
            raise UnexpectedResponse("/userSessions", f"no session in login response: {e}") from e
        logger.info(f"Logged in to Resonite as {session.user_id}")
        return session

    async def list_records(self, session: ResoniteSession, path: str) -> list[RawRecord]:
        endpoint = f"/users/{session.user_id}/records"
        response = await self._send(
            "GET",
            endpoint,
            session=session,
            params={"path": path},
        )
        try:
            items = response.json()
        except ValueError as e:
            raise UnexpectedResponse(endpoint, "body is not JSON") from e
        if not isinstance(items, list):
            raise UnexpectedResponse(endpoint, f"expected a list, got {type(items).__name__}")

        records: list[RawRecord] = []
        for item in items:
            try:
                records.append(RawRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Ignoring unreadable record in {path}: {e.errors()[0]['msg']}")
        return records

    async def fetch_asset(self, url: str) -> bytes:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Unable to download {url}: {e}") from e
        if not response.is_success:
            raise RemoteCallFailed(url, response.status_code, response.text)
        return response.content

    async def delete_record(self, session: ResoniteSession, record_id: str) -> None:
        await self._send(
            "DELETE", f"/users/{session.user_id}/records/{record_id}", session=session
        )
        logger.info(f"Deleted source record {record_id}")

    async def _send(
        self,
        method: str,
        endpoint: str,
        session: ResoniteSession,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"{self._config.api_url}{endpoint}",
                params=params,
                headers={"Authorization": session.authorization},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"{method} {endpoint} failed: {e}") from e
        if not response.is_success:
            logger.warning(f"{method} {endpoint} {response.status_code}: {response.text}")
            raise RemoteCallFailed(endpoint, response.status_code, response.text)
        return response
