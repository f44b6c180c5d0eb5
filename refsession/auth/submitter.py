"""Credential submission and classification of the raw submission response."""

import logging
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional
from urllib.parse import urljoin

from ..api.transport import FormData, HttpResponse, Transport
from .cancellation import CancellationToken
from .models import ErrorKind, LoginFailure, LoginFormFields, LoginOutcome
from .outcome import outcome_from_body


logger = logging.getLogger(__name__)


AUTHENTICATE_PATH = "/sportmanager.security/authentication/authenticate"
DASHBOARD_PATH = "/sportmanager.volleyball/main/dashboard"

HTTP_LOCKED = 423

# Neos Flow username/password token field names
USERNAME_FIELD = "__authentication[Neos][Flow][Security][Authentication][Token][UsernamePassword][username]"
PASSWORD_FIELD = "__authentication[Neos][Flow][Security][Authentication][Token][UsernamePassword][password]"


def build_login_form_data(username: str, password: str, fields: LoginFormFields) -> FormData:
    """Build the form body in the order the backend's own form posts it."""
    return [
        ("__referrer[@package]", fields.referrer_package),
        ("__referrer[@subpackage]", fields.referrer_subpackage),
        ("__referrer[@controller]", fields.referrer_controller),
        ("__referrer[@action]", fields.referrer_action),
        ("__referrer[arguments]", fields.referrer_arguments),
        ("__trustedProperties", fields.trusted_properties),
        (USERNAME_FIELD, username),
        (PASSWORD_FIELD, password),
    ]


def dashboard_url_for(auth_url: str) -> str:
    """Compute the dashboard URL from the submission URL.

    The auth path suffix is swapped for the dashboard path, which keeps any
    proxy prefix in front of it intact.
    """
    base = auth_url.split("?", 1)[0]
    if base.endswith(AUTHENTICATE_PATH):
        return base[: -len(AUTHENTICATE_PATH)] + DASHBOARD_PATH
    return urljoin(auth_url, DASHBOARD_PATH)


@dataclass(frozen=True)
class Verdict:
    """Decision reached for a submission response.

    Exactly one of ``outcome`` (final) or ``dashboard_url`` (presumptive
    success, token still to be confirmed) is set.
    """

    rule: str
    outcome: Optional[LoginOutcome] = None
    dashboard_url: Optional[str] = None

    @property
    def requires_confirmation(self) -> bool:
        return self.dashboard_url is not None


class SubmissionRule(NamedTuple):
    name: str
    evaluate: Callable[[HttpResponse, str], Optional[Verdict]]


def _account_locked(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    if response.status_code != HTTP_LOCKED:
        return None

    try:
        payload = response.json()
    except ValueError:
        logger.warning("Account locked (423) with unparseable body")
        return Verdict("account_locked", outcome=LoginFailure(ErrorKind.ACCOUNT_LOCKED))

    if not isinstance(payload, dict):
        return Verdict("account_locked", outcome=LoginFailure(ErrorKind.ACCOUNT_LOCKED))

    locked_until = payload.get("lockedUntil")
    if not isinstance(locked_until, (int, float)) or isinstance(locked_until, bool):
        locked_until = None
    message = payload.get("message")
    logger.warning(f"Account locked (423), lockedUntil={locked_until}")
    return Verdict(
        "account_locked",
        outcome=LoginFailure(
            ErrorKind.ACCOUNT_LOCKED,
            locked_until=locked_until,
            detail=message if isinstance(message, str) and message else None,
        ),
    )


def _json_envelope(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    # Some proxies wrap the redirect in JSON so clients that drop headers on
    # redirect still see the decision
    if response.status_code != 200 or "json" not in response.mime_type:
        return None

    try:
        payload = response.json()
    except ValueError:
        logger.debug("JSON content type but body is not valid JSON, falling through")
        return None

    if not isinstance(payload, dict) or "success" not in payload:
        return None

    if not payload.get("success"):
        logger.info("JSON envelope reports failed login")
        return Verdict("json_envelope", outcome=LoginFailure(ErrorKind.INVALID_CREDENTIALS))

    redirect_url = payload.get("redirectUrl")
    if isinstance(redirect_url, str) and redirect_url:
        target = urljoin(auth_url, redirect_url)
    else:
        target = dashboard_url_for(auth_url)
    logger.info(f"JSON envelope reports successful login, redirect to {target}")
    return Verdict("json_envelope", dashboard_url=target)


def _opaque_redirect(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    if not response.opaque_redirect:
        return None
    logger.info("Got opaque redirect response, assuming successful login")
    return Verdict("opaque_redirect", dashboard_url=dashboard_url_for(auth_url))


def _dashboard_redirect(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    location = response.location
    if not response.is_redirect or not location or DASHBOARD_PATH not in location:
        return None
    logger.info(f"Login redirect to dashboard detected ({response.status_code} -> {location})")
    return Verdict("dashboard_redirect", dashboard_url=urljoin(auth_url, location))


def _http_error(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    """Map 4xx/5xx to REQUEST_FAILED.

    3xx responses that did not point at the dashboard are left to the body
    rule, so a redirect back to the login page classifies by its (usually
    empty) body and ends as UNKNOWN rather than REQUEST_FAILED.
    """
    if response.ok or response.is_redirect:
        return None
    logger.error(f"Authentication request failed with status {response.status_code}")
    return Verdict("http_error", outcome=LoginFailure(ErrorKind.REQUEST_FAILED))


def _response_body(response: HttpResponse, auth_url: str) -> Optional[Verdict]:
    return Verdict("response_body", outcome=outcome_from_body(response))


# Evaluated top to bottom, first verdict wins. The last rule always applies.
SUBMISSION_RULES: List[SubmissionRule] = [
    SubmissionRule("account_locked", _account_locked),
    SubmissionRule("json_envelope", _json_envelope),
    SubmissionRule("opaque_redirect", _opaque_redirect),
    SubmissionRule("dashboard_redirect", _dashboard_redirect),
    SubmissionRule("http_error", _http_error),
    SubmissionRule("response_body", _response_body),
]


def evaluate_submission(
    response: HttpResponse,
    auth_url: str,
    rules: Optional[List[SubmissionRule]] = None,
) -> Verdict:
    """Run the submission rules against a response.

    Args:
        response: Raw submission response
        auth_url: URL the credentials were posted to
        rules: Ordered rules (default: SUBMISSION_RULES)

    Returns:
        Verdict of the first applicable rule
    """
    for rule in rules if rules is not None else SUBMISSION_RULES:
        verdict = rule.evaluate(response, auth_url)
        if verdict is not None:
            logger.debug(f"Submission rule '{rule.name}' matched")
            return verdict

    log_context = f"status={response.status_code}, opaque={response.opaque_redirect}"
    logger.warning(f"No submission rule matched ({log_context})")
    return Verdict("no_match", outcome=LoginFailure(ErrorKind.UNKNOWN))


class CredentialSubmitter:
    """Posts credentials without following redirects so 3xx responses stay visible."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def submit(
        self,
        auth_url: str,
        username: str,
        password: str,
        fields: LoginFormFields,
        cancel: Optional[CancellationToken] = None,
    ) -> HttpResponse:
        """Submit the login form.

        Args:
            auth_url: Authentication endpoint
            username: VolleyManager username
            password: Password
            fields: Hidden fields extracted from the login page
            cancel: Cancellation token for the attempt

        Returns:
            HttpResponse of the POST, redirects not followed

        Raises:
            TransportError: If the request fails
        """
        logger.info(f"Submitting credentials for user '{username}' to {auth_url}")
        response = self.transport.post_form(
            auth_url,
            build_login_form_data(username, password, fields),
            cancel=cancel,
            follow_redirects=False,
            headers={"Cache-Control": "no-cache"},
        )
        logger.info(
            f"Auth response received: status={response.status_code}, "
            f"opaque_redirect={response.opaque_redirect}, mime_type={response.mime_type or '(none)'}"
        )
        return response
