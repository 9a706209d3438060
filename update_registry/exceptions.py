"""Custom exception classes for the update registry."""

from typing import Any, Optional


class RegistryException(Exception):
    """Base exception for all registry errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for API responses.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code for API responses.
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for a JSON response body."""
        return {"detail": self.message}

    def headers(self) -> Optional[dict[str, str]]:
        """Extra response headers, if any."""
        return None


class AppNotFoundError(RegistryException):
    """Raised when a requested app does not exist."""

    def __init__(self, identifier: str) -> None:
        """Initialize the exception.

        Args:
            identifier: App ID or slug that was looked up.
        """
        super().__init__(
            message=f"App with identifier '{identifier}' was not found",
            status_code=404,
        )
        self.identifier = identifier


class ReleaseNotFoundError(RegistryException):
    """Raised when a requested release does not exist."""

    def __init__(self, release_id: str) -> None:
        super().__init__(
            message=f"Release with identifier '{release_id}' was not found",
            status_code=404,
        )
        self.release_id = release_id


class ArtifactNotFoundError(RegistryException):
    """Raised when a requested artifact does not exist."""

    def __init__(self, artifact_id: str) -> None:
        super().__init__(
            message=f"Artifact with identifier '{artifact_id}' was not found",
            status_code=404,
        )
        self.artifact_id = artifact_id


class InstallerNotFoundError(RegistryException):
    """Raised when a requested installer does not exist."""

    def __init__(self, installer_id: str) -> None:
        super().__init__(
            message=f"Installer with identifier '{installer_id}' was not found",
            status_code=404,
        )
        self.installer_id = installer_id


class DuplicateAppError(RegistryException):
    """Raised when attempting to create an app whose slug is taken."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            message=f"App with slug '{slug}' already exists",
            status_code=409,
        )
        self.slug = slug


class DuplicateVersionError(RegistryException):
    """Raised when attempting to create a version that already exists."""

    def __init__(self, app_id: str, version: str) -> None:
        """Initialize the exception.

        Args:
            app_id: ID of the app.
            version: Version that already exists.
        """
        super().__init__(
            message=f"Release version '{version}' already exists for app '{app_id}'",
            status_code=409,
        )
        self.app_id = app_id
        self.version = version


class PlatformConflictError(RegistryException):
    """Raised when a release already holds a file for a platform."""

    def __init__(self, kind: str, release_id: str, platform: str) -> None:
        """Initialize the exception.

        Args:
            kind: "artifact" or "installer".
            release_id: Release ID.
            platform: Conflicting platform.
        """
        super().__init__(
            message=f"An {kind} for platform '{platform}' already exists for release '{release_id}'",
            status_code=409,
        )
        self.release_id = release_id
        self.platform = platform


class ReleaseStatusError(RegistryException):
    """Raised when an operation is not allowed in the release's current status."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=409)


class RepositoryError(RegistryException):
    """Raised when the storage collaborator fails.

    Distinct from "not found": callers must never treat it as an empty result.
    """

    def __init__(self, message: str, operation: str = "unknown") -> None:
        """Initialize the exception.

        Args:
            message: Error message describing the failure.
            operation: The repository operation that failed.
        """
        super().__init__(
            message=f"Storage error during '{operation}': {message}",
            status_code=503,
        )
        self.operation = operation


class AuthenticationError(RegistryException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message, status_code=401)

    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class PermissionDeniedError(RegistryException):
    """Raised when an API key lacks permission for an action."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message=message, status_code=403)


class ValidationError(RegistryException):
    """Raised when input validation fails.

    Attributes:
        field: The field that failed validation.
        errors: Structured validation errors, if any.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message=message, status_code=400)
        self.field = field
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        if self.errors:
            body["errors"] = self.errors
        return body


class RateLimitExceededError(RegistryException):
    """Raised by the rate-limit dependency when a client is over its limit.

    Attributes:
        limit: Maximum requests per window.
        reset: Epoch seconds at which the window resets.
        retry_after: Seconds until a retry can succeed.
    """

    def __init__(self, limit: int, reset: int, retry_after: int) -> None:
        super().__init__(
            message=f"Rate limit exceeded. Please retry after {retry_after} seconds.",
            status_code=429,
        )
        self.limit = limit
        self.reset = reset
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "code": "RATE_LIMIT_EXCEEDED",
            "retry_after": self.retry_after,
        }

    def headers(self) -> Optional[dict[str, str]]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(self.reset),
        }
