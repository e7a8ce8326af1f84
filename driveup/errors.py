"""
Exception types for driveup.

Upload-path errors are split in two by a single rule: an exception that
carries a provider error code (``code`` attribute) is permanent, anything
else is transient and gets retried.
"""
from typing import Optional


class DriveUpError(Exception):
    """Base class for driveup errors."""


class CLIError(DriveUpError):
    """Raised when CLI validation/execution fails."""


class ConfigError(DriveUpError):
    """Raised when required configuration is missing or invalid."""


class ProviderError(DriveUpError):
    """Structured error returned by the storage provider."""

    def __init__(self, code: str, message: str = "", status: Optional[int] = None):
        self.code = code
        self.message = message
        self.status = status
        detail = f"{code}: {message}" if message else code
        if status is not None:
            detail = f"[{status}] {detail}"
        super().__init__(detail)


class AuthenticationError(ProviderError):
    """Token acquisition was refused by the identity platform."""


class TransientUploadError(DriveUpError):
    """Recoverable upload failure (server busy, throttled, timed out)."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class SessionExpiredError(TransientUploadError):
    """The retained upload session is gone; a new one must be created."""


def is_permanent(exc: BaseException) -> bool:
    """True when the error carries a provider error code."""
    return bool(getattr(exc, "code", None))
