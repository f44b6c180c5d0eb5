"""Outcome and form data types for VolleyManager session establishment."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union


class ErrorKind(str, Enum):
    """Terminal reasons a login attempt can fail."""

    MISSING_FORM_FIELDS = "missing_form_fields"
    INVALID_CREDENTIALS = "invalid_credentials"
    SECOND_FACTOR_REQUIRED = "second_factor_required"
    ACCOUNT_LOCKED = "account_locked"
    REQUEST_FAILED = "request_failed"
    SESSION_ESTABLISHMENT_FAILED = "session_establishment_failed"
    COOKIE_NOT_SENT = "cookie_not_sent"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


FAILURE_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.MISSING_FORM_FIELDS: "Could not read the login form. The login page may have changed.",
    ErrorKind.INVALID_CREDENTIALS: "Invalid username or password.",
    ErrorKind.SECOND_FACTOR_REQUIRED: (
        "Two-factor authentication is not supported. "
        "Please disable it in your VolleyManager account settings to use this app."
    ),
    ErrorKind.ACCOUNT_LOCKED: "Account temporarily locked due to too many failed attempts.",
    ErrorKind.REQUEST_FAILED: "Authentication request failed.",
    ErrorKind.SESSION_ESTABLISHMENT_FAILED: "Login succeeded but the session could not be established.",
    ErrorKind.COOKIE_NOT_SENT: "Login succeeded but the session cookie was not kept by this client.",
    ErrorKind.TIMEOUT: "The login attempt timed out.",
    ErrorKind.UNKNOWN: "Login failed - please try again.",
}

# Extra guidance for failures the user can work around on their side
FAILURE_HINTS: Dict[ErrorKind, str] = {
    ErrorKind.SESSION_ESTABLISHMENT_FAILED: (
        "Try again in a regular browser window, or disable private/standalone mode."
    ),
    ErrorKind.COOKIE_NOT_SENT: (
        "Your browser blocked the session cookie. Try a different browser, "
        "or open the app in a browser tab instead of the installed app."
    ),
}


@dataclass(frozen=True)
class LoginFormFields:
    """Hidden fields the Neos Flow login form must echo back.

    ``trusted_properties`` is the anti-forgery token; the referrer fields tell
    the backend which form target to validate against.
    """

    trusted_properties: str
    referrer_package: str = "SportManager.Volleyball"
    referrer_subpackage: str = ""
    referrer_controller: str = "Public"
    referrer_action: str = "login"
    referrer_arguments: str = ""


@dataclass(frozen=True)
class LoginSuccess:
    """Session was established and the token was read from the dashboard."""

    session_token: str
    dashboard_html: str

    @property
    def success(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"LoginSuccess(session_token='{_mask(self.session_token)}', dashboard_html=<{len(self.dashboard_html)} chars>)"


@dataclass(frozen=True)
class LoginFailure:
    """Login attempt ended without a session.

    ``locked_until`` is only set for ``ACCOUNT_LOCKED`` and is the value the
    backend reported, copied verbatim. ``detail`` holds a server-provided
    message when there is one.
    """

    reason: ErrorKind
    locked_until: Optional[float] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return False

    @property
    def message(self) -> str:
        """Human-readable message for this failure."""
        if self.reason == ErrorKind.ACCOUNT_LOCKED and self.detail:
            return self.detail
        return FAILURE_MESSAGES[self.reason]

    @property
    def hint(self) -> Optional[str]:
        """Actionable hint, only for failures the user can work around."""
        return FAILURE_HINTS.get(self.reason)


LoginOutcome = Union[LoginSuccess, LoginFailure]


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"
