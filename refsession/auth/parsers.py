"""HTML parsing for VolleyManager login and dashboard pages.

Three pure helpers live here:

    extract_login_form_fields(html)  - hidden Neos Flow form fields
    extract_session_token(html)      - token on the root <html> element
    classify_page(html)              - dashboard / login error / second factor / unknown
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup

from .models import ErrorKind, LoginFailure, LoginFormFields


logger = logging.getLogger(__name__)


# Hidden input names in the login form
TRUSTED_PROPERTIES_FIELD = "__trustedProperties"
REFERRER_PACKAGE_FIELD = "__referrer[@package]"
REFERRER_SUBPACKAGE_FIELD = "__referrer[@subpackage]"
REFERRER_CONTROLLER_FIELD = "__referrer[@controller]"
REFERRER_ACTION_FIELD = "__referrer[@action]"
REFERRER_ARGUMENTS_FIELD = "__referrer[arguments]"

# Root element attributes carrying the session token, checked in order
SESSION_TOKEN_ATTRIBUTES = ("data-csrf-token", "data-session-token")

# Login form indicators
LOGIN_FORM_ACTION_MARKERS = ('action="/login"', "action='/login'")
USERNAME_INPUT_MARKER = 'id="username"'
PASSWORD_INPUT_MARKER = 'id="password"'

# The notification snackbar uses this styling for authentication errors
AUTH_ERROR_INDICATORS = ('color="error"', "color='error'")

# Field names that only appear on the two-factor input page
SECOND_FACTOR_INDICATORS = (
    "secondFactorToken",
    "SecondFactor",
    "TwoFactorAuthentication",
    "totp",
    "TOTP",
)


class PageKind(str, Enum):
    """What a response document looks like."""

    DASHBOARD = "dashboard"
    LOGIN_WITH_ERROR = "login_with_error"
    LOGIN_WITH_SECOND_FACTOR = "login_with_second_factor"
    UNKNOWN = "unknown"


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _input_value(soup: BeautifulSoup, name: str) -> Optional[str]:
    field = soup.find("input", attrs={"name": name})
    if field is None:
        return None
    value = field.get("value")
    if isinstance(value, list):
        value = " ".join(value)
    return value


def extract_login_form_fields(html: str) -> Union[LoginFormFields, LoginFailure]:
    """Extract the hidden anti-forgery and referrer fields from the login page.

    Only ``__trustedProperties`` is required. Missing referrer fields fall back
    to the defaults the backend uses for its own login form.

    Args:
        html: Login page HTML

    Returns:
        LoginFormFields, or LoginFailure(MISSING_FORM_FIELDS) when the token
        field is absent or the markup cannot be parsed
    """
    try:
        soup = _parse(html)
        trusted_properties = _input_value(soup, TRUSTED_PROPERTIES_FIELD)
        if not trusted_properties:
            logger.error(f"Missing {TRUSTED_PROPERTIES_FIELD} field in login form")
            return LoginFailure(ErrorKind.MISSING_FORM_FIELDS)

        defaults = LoginFormFields(trusted_properties=trusted_properties)

        def field_or_default(name: str, default: str) -> str:
            value = _input_value(soup, name)
            return default if value is None else value

        fields = LoginFormFields(
            trusted_properties=trusted_properties,
            referrer_package=field_or_default(REFERRER_PACKAGE_FIELD, defaults.referrer_package),
            referrer_subpackage=field_or_default(REFERRER_SUBPACKAGE_FIELD, defaults.referrer_subpackage),
            referrer_controller=field_or_default(REFERRER_CONTROLLER_FIELD, defaults.referrer_controller),
            referrer_action=field_or_default(REFERRER_ACTION_FIELD, defaults.referrer_action),
            referrer_arguments=field_or_default(REFERRER_ARGUMENTS_FIELD, defaults.referrer_arguments),
        )
        logger.debug(
            f"Extracted login form fields (controller={fields.referrer_controller}, "
            f"action={fields.referrer_action})"
        )
        return fields
    except Exception as e:
        # Unparseable markup counts as "field not found"
        logger.error(f"Failed to parse login page HTML: {e}")
        return LoginFailure(ErrorKind.MISSING_FORM_FIELDS)


def extract_session_token(html: str) -> Optional[str]:
    """Read the session token from the root <html> element.

    Args:
        html: HTML of a presumably authenticated page

    Returns:
        The token string, or None when the page carries no token
    """
    try:
        root = _parse(html).find("html")
    except Exception as e:
        logger.error(f"Failed to parse page while looking for session token: {e}")
        return None

    if root is not None:
        for attribute in SESSION_TOKEN_ATTRIBUTES:
            token = root.get(attribute)
            if token:
                return token

    logger.warning("Could not find session token attribute on page root element")
    return None


def has_login_form(html: str) -> bool:
    """Check for the login form action or a username/password input pair."""
    if any(marker in html for marker in LOGIN_FORM_ACTION_MARKERS):
        return True
    return USERNAME_INPUT_MARKER in html and PASSWORD_INPUT_MARKER in html


def is_dashboard_page(html: str) -> bool:
    has_token_marker = any(attribute in html for attribute in SESSION_TOKEN_ATTRIBUTES)
    return has_token_marker and not has_login_form(html)


def has_auth_error(html: str) -> bool:
    return any(indicator in html for indicator in AUTH_ERROR_INDICATORS)


def has_second_factor_prompt(html: str) -> bool:
    return any(indicator in html for indicator in SECOND_FACTOR_INDICATORS)


def is_login_page(html: str) -> bool:
    """Check whether the document is the login page rather than the dashboard."""
    return has_login_form(html) and not is_dashboard_page(html)


# Evaluated top to bottom, first match wins. Error styling can appear on a
# dashboard notification and a token can be echoed on an intermediate page,
# so the dashboard rule also requires the login form to be absent.
CONTENT_RULES: List[Tuple[PageKind, Callable[[str], bool]]] = [
    (PageKind.DASHBOARD, is_dashboard_page),
    (PageKind.LOGIN_WITH_ERROR, has_auth_error),
    (PageKind.LOGIN_WITH_SECOND_FACTOR, has_second_factor_prompt),
]


def classify_page(html: str, rules: Optional[List[Tuple[PageKind, Callable[[str], bool]]]] = None) -> PageKind:
    """Classify a response document.

    Args:
        html: Response HTML (may be empty)
        rules: Ordered (kind, predicate) rules, defaults to CONTENT_RULES

    Returns:
        PageKind of the first matching rule, or PageKind.UNKNOWN
    """
    html = html or ""
    for kind, matches in rules if rules is not None else CONTENT_RULES:
        if matches(html):
            return kind
    return PageKind.UNKNOWN
