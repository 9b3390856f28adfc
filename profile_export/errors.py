"""
Errors: Exception Taxonomy for the Export Pipeline

Run-fatal:
- PreconditionError: missing credentials or inputs (raised before a browser opens)
- AuthenticationError / LoginFailedError: no usable session

Recoverable (caught and turned into a fallback or a per-target outcome):
- SessionStoreError and subclasses: fall back to credential login
- ElementNotFoundError: try the next locator strategy or skip the target
- DownloadTimeoutError: skip the target
"""


class ProfileExportError(Exception):
    """Base class for all profile_export errors."""


class PreconditionError(ProfileExportError):
    """Required configuration or input is missing."""


class SessionStoreError(ProfileExportError):
    """Base class for cookie file failures."""


class PersistenceError(SessionStoreError):
    """The cookie file could not be written."""


class NotFoundError(SessionStoreError):
    """No cookie file has been saved yet."""


class CorruptDataError(SessionStoreError):
    """The cookie file exists but cannot be parsed as a whole."""


class AuthenticationError(ProfileExportError):
    """No authenticated session could be established."""


class LoginFailedError(AuthenticationError):
    """Credential login did not reach a known post-login page in time."""


class ElementNotFoundError(ProfileExportError):
    """A UI element did not appear within its bounded wait."""

    def __init__(self, description: str, timeout_s: float):
        super().__init__(f"{description} not found within {timeout_s:g}s")
        self.description = description
        self.timeout_s = timeout_s


class DownloadTimeoutError(ProfileExportError):
    """No finished artifact appeared in the download directory in time."""
