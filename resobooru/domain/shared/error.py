"""Error hierarchy for resobooru.

Error layers:
- ResobooruError: Base class for all resobooru errors
- DomainError: Data and business rule violations (a single record cannot be imported)
- InfrastructureError: System-level failures like network or auth issues

Record-scoped errors (RecordError subclasses) never abort a batch: the import
service logs them and moves on to the next record.
"""


class ResobooruError(Exception):
    """Base class for all resobooru errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (the data of a single record is unusable)
# =============================================================================


class DomainError(ResobooruError):
    """Base class for domain errors."""


class RecordError(DomainError):
    """A single inventory record could not be processed."""

    def __init__(self, message: str, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id

    def __str__(self) -> str:
        if self.record_id:
            return f"[{self.record_id}] {self.message}"
        return self.message


class DecodeError(RecordError):
    """The asset container is empty, corrupt, or not shaped like a photo document."""

    def __init__(
        self, message: str, record_id: str | None = None, path: str | None = None
    ) -> None:
        super().__init__(message, record_id=record_id)
        self.path = path


class UnknownImageSystem(RecordError):
    """Neither the type table nor a legacy photo system yields both components."""


class MalformedMetadata(RecordError):
    """A required photo-metadata field is absent or invalid."""

    def __init__(
        self, message: str, record_id: str | None = None, path: str | None = None
    ) -> None:
        super().__init__(message, record_id=record_id)
        self.path = path


# =============================================================================
# Infrastructure Errors (system-level failures)
# =============================================================================


class InfrastructureError(ResobooruError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """External service (Resonite, Oxibooru) is unavailable or failed."""


class RemoteCallFailed(ExternalServiceError):
    """A remote API answered with a non-success status."""

    def __init__(self, endpoint: str, status: int, body: str) -> None:
        super().__init__(f"{endpoint} failed with {status}: {body}")
        self.endpoint = endpoint
        self.status = status
        self.body = body

    @property
    def is_conflict(self) -> bool:
        """Stale version token (optimistic concurrency check failed)."""
        return self.status == 409

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class UnexpectedResponse(ExternalServiceError):
    """A remote API answered with a success status but a body of the wrong shape."""

    def __init__(self, endpoint: str, detail: str) -> None:
        super().__init__(f"{endpoint} returned an unexpected response: {detail}")
        self.endpoint = endpoint


class AuthenticationError(InfrastructureError):
    """Login against the source platform failed."""


class TotpRequiredError(AuthenticationError):
    """The account has two-factor authentication enabled and needs a TOTP code."""

    def __init__(self) -> None:
        super().__init__("A TOTP code is required for this account", code="TOTP")


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
