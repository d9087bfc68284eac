"""Exception hierarchy for the visitor authorization flow.

Every failure aborts the whole flow. Each exception names the stage that failed
so the caller can decide whether starting over from scratch is worthwhile.
"""

from requests import Response


class KastleError(Exception):
    """Base class for all errors raised while authorizing a visit."""

    def __init__(self, message: str, response: Response = None, stage: str = None):
        super().__init__(message)
        self.response = response
        self.stage = stage


class CredentialsNotConfiguredError(KastleError):
    """Raised when the portal credentials are missing from the environment."""


class TransportError(KastleError):
    """Raised when an HTTP call fails at the network layer (DNS, connect, timeout)."""


class LoginPageUnavailableError(KastleError):
    """Raised when the login page cannot be fetched or does not parse."""


class MissingTokenError(LoginPageUnavailableError):
    """Raised when a required hidden form field is absent from the login page."""

    def __init__(self, field_name: str, response: Response = None):
        super().__init__(
            f"Hidden field {field_name!r} not found in login page",
            response,
            stage="login-page",
        )
        self.field_name = field_name


class PreloginRejectedError(KastleError):
    """Raised when the username post-back is not accepted."""


class AuthenticationRejectedError(KastleError):
    """Raised when the password step does not yield a usable session."""


class AuthorizationRejectedError(KastleError):
    """Raised when the visitor submission does not report success."""
