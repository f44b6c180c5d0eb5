"""Turns submission and dashboard responses into a definitive login outcome."""

import logging
from typing import Optional

from ..api.transport import HttpResponse, Transport
from .cancellation import CancellationToken
from .models import ErrorKind, LoginFailure, LoginOutcome, LoginSuccess
from .parsers import PageKind, classify_page, extract_session_token, is_login_page


logger = logging.getLogger(__name__)


# Maximum characters of body included in diagnostic logs
DIAGNOSTIC_PREVIEW_LENGTH = 500

# Default wait before re-fetching the dashboard, in seconds
DEFAULT_COOKIE_DELAY_SECONDS = 0.1

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def log_unrecognized_response(response: HttpResponse, context: str) -> None:
    """Log response metadata for a response no rule could classify."""
    body = response.text
    logger.warning(
        f"Could not determine login result from {context}: "
        f"status={response.status_code}, url={response.url or '(no url)'}, "
        f"redirected={response.redirected}, content_type={response.content_type or '(none)'}, "
        f"length={len(body)}"
    )
    logger.debug(f"Response preview: {body[:DIAGNOSTIC_PREVIEW_LENGTH]}")


def outcome_from_body(response: HttpResponse) -> LoginOutcome:
    """Classify a submission response that was not a redirect.

    A dashboard body is accepted in place when it carries the token, so no
    secondary fetch is needed.

    Args:
        response: Submission response with a readable body

    Returns:
        LoginOutcome for the body content
    """
    html = response.text
    kind = classify_page(html)
    logger.info(f"Submission body classified as {kind.value}")

    if kind == PageKind.DASHBOARD:
        token = extract_session_token(html)
        if token:
            return LoginSuccess(session_token=token, dashboard_html=html)
        return LoginFailure(ErrorKind.SESSION_ESTABLISHMENT_FAILED)

    if kind == PageKind.LOGIN_WITH_ERROR:
        return LoginFailure(ErrorKind.INVALID_CREDENTIALS)

    if kind == PageKind.LOGIN_WITH_SECOND_FACTOR:
        logger.info("Two-factor page detected - user has two-factor authentication enabled")
        return LoginFailure(ErrorKind.SECOND_FACTOR_REQUIRED)

    log_unrecognized_response(response, "submission response")
    return LoginFailure(ErrorKind.UNKNOWN)


def outcome_from_dashboard(response: HttpResponse) -> LoginOutcome:
    """Classify the page fetched after a presumptive redirect to the dashboard.

    Args:
        response: Response of the secondary dashboard GET

    Returns:
        LoginOutcome; COOKIE_NOT_SENT when the backend served the login page
    """
    if not response.ok:
        logger.error(f"Dashboard request failed with status {response.status_code}")
        return LoginFailure(ErrorKind.REQUEST_FAILED)

    html = response.text
    token = extract_session_token(html)
    if token:
        return LoginSuccess(session_token=token, dashboard_html=html)

    kind = classify_page(html)
    if kind == PageKind.DASHBOARD:
        logger.error("Redirected to dashboard but the page carries no session token")
        return LoginFailure(ErrorKind.SESSION_ESTABLISHMENT_FAILED)

    if kind == PageKind.LOGIN_WITH_ERROR or is_login_page(html):
        logger.error("Dashboard request returned the login page - session cookie was not sent")
        return LoginFailure(ErrorKind.COOKIE_NOT_SENT)

    if kind == PageKind.LOGIN_WITH_SECOND_FACTOR:
        return LoginFailure(ErrorKind.SECOND_FACTOR_REQUIRED)

    log_unrecognized_response(response, "dashboard response")
    return LoginFailure(ErrorKind.UNKNOWN)


class DashboardFetcher:
    """Confirms a presumptive login by fetching the dashboard and reading its token."""

    def __init__(self, transport: Transport, cookie_delay_seconds: float = DEFAULT_COOKIE_DELAY_SECONDS):
        """Initialize fetcher.

        Args:
            transport: Transport sharing the cookie jar of the submission
            cookie_delay_seconds: Wait before the GET (default: 0.1)
        """
        self.transport = transport
        self.cookie_delay_seconds = cookie_delay_seconds

    def confirm(self, dashboard_url: str, cancel: Optional[CancellationToken] = None) -> LoginOutcome:
        """Fetch the dashboard and derive the outcome from its content.

        Args:
            dashboard_url: Absolute dashboard URL
            cancel: Cancellation token for the attempt

        Returns:
            LoginOutcome
        """
        cancel = cancel or CancellationToken()

        # Best-effort mitigation: gives the client time to commit the cookie
        # from the previous response. It does not guarantee the cookie is set.
        if self.cookie_delay_seconds > 0:
            cancel.sleep(self.cookie_delay_seconds)

        logger.info(f"Fetching dashboard to confirm session: {dashboard_url}")
        response = self.transport.get(
            dashboard_url,
            cancel=cancel,
            follow_redirects=True,
            headers=dict(NO_CACHE_HEADERS),
        )
        outcome = outcome_from_dashboard(response)
        if outcome.success:
            logger.info("✓ Session token extracted from dashboard")
        return outcome
