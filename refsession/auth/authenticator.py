"""Session establishment against the VolleyManager login pages."""

import logging
from typing import Optional

from ..api.transport import Transport, TransportError, TransportTimeout
from .cancellation import AttemptCancelled, AttemptTimedOut, CancellationToken
from .models import ErrorKind, LoginFailure, LoginFormFields, LoginOutcome
from .outcome import DEFAULT_COOKIE_DELAY_SECONDS, DashboardFetcher
from .parsers import extract_login_form_fields, is_dashboard_page
from .session_sink import SessionSink
from .submitter import CredentialSubmitter, dashboard_url_for, evaluate_submission


logger = logging.getLogger(__name__)


class SessionAuthenticator:
    """Runs the login sequence and hands the resulting session to a sink.

    The authenticator keeps no state between attempts. Each attempt's cookies
    live in the transport, so concurrent attempts for different users need
    separate transports.
    """

    def __init__(
        self,
        transport: Transport,
        session_sink: Optional[SessionSink] = None,
        cookie_delay_seconds: float = DEFAULT_COOKIE_DELAY_SECONDS,
    ):
        """Initialize authenticator.

        Args:
            transport: Transport for all requests of an attempt
            session_sink: Receives token and dashboard HTML on success (optional)
            cookie_delay_seconds: Wait before confirming the dashboard (default: 0.1)
        """
        self.transport = transport
        self.session_sink = session_sink
        self.submitter = CredentialSubmitter(transport)
        self.dashboard_fetcher = DashboardFetcher(transport, cookie_delay_seconds=cookie_delay_seconds)

    def establish_session(
        self,
        login_page_url: str,
        auth_url: str,
        username: str,
        password: str,
        cancel: Optional[CancellationToken] = None,
    ) -> LoginOutcome:
        """Log in and return the outcome.

        Expected failures come back as LoginFailure. Transport errors become
        REQUEST_FAILED, a passed deadline becomes TIMEOUT, and anything
        unexpected is logged and becomes UNKNOWN.

        Args:
            login_page_url: URL of the login page holding the form fields
            auth_url: URL the credentials are posted to
            username: VolleyManager username
            password: Password
            cancel: Cancellation token carrying the caller's deadline (optional)

        Returns:
            LoginSuccess or LoginFailure

        Raises:
            AttemptCancelled: If the caller cancelled the attempt
        """
        cancel = cancel or CancellationToken()
        logger.info(f"Starting login for user '{username}'")

        try:
            outcome = self._run(login_page_url, auth_url, username, password, cancel)
        except (AttemptTimedOut, TransportTimeout) as e:
            logger.error(f"Login attempt timed out: {e}")
            outcome = LoginFailure(ErrorKind.TIMEOUT)
        except AttemptCancelled:
            logger.info("Login attempt cancelled")
            raise
        except TransportError as e:
            logger.error(f"Login request failed: {e}")
            outcome = LoginFailure(ErrorKind.REQUEST_FAILED)
        except Exception as e:
            logger.error(f"Unexpected error during login: {e}", exc_info=True)
            outcome = LoginFailure(ErrorKind.UNKNOWN)

        if outcome.success:
            logger.info("✓ Login successful")
            if self.session_sink is not None:
                self.session_sink.store(outcome.session_token, outcome.dashboard_html)
        else:
            logger.warning(f"✗ Login failed: {outcome.reason.value}")
        return outcome

    def _run(
        self,
        login_page_url: str,
        auth_url: str,
        username: str,
        password: str,
        cancel: CancellationToken,
    ) -> LoginOutcome:
        # Step 1: Load the login page
        logger.info(f"Step 1: Loading login page {login_page_url}")
        login_page = self.transport.get(
            login_page_url,
            cancel=cancel,
            follow_redirects=True,
            headers={"Cache-Control": "no-cache"},
        )
        if not login_page.ok:
            logger.error(f"Failed to load login page (status {login_page.status_code})")
            return LoginFailure(ErrorKind.REQUEST_FAILED)
        login_html = login_page.text

        # An existing session makes the backend serve a page that already has a token
        if is_dashboard_page(login_html):
            logger.info("  → Already logged in, confirming via dashboard")
            return self.dashboard_fetcher.confirm(dashboard_url_for(auth_url), cancel)

        # Step 2: Extract hidden form fields
        logger.info("Step 2: Extracting login form fields")
        fields = extract_login_form_fields(login_html)
        if not isinstance(fields, LoginFormFields):
            return fields

        # Step 3: Submit credentials without following redirects
        logger.info("Step 3: Submitting credentials")
        response = self.submitter.submit(auth_url, username, password, fields, cancel)

        # Step 4: Reconcile the response into a verdict
        verdict = evaluate_submission(response, auth_url)
        logger.info(f"Step 4: Submission classified by rule '{verdict.rule}'")
        if not verdict.requires_confirmation:
            return verdict.outcome

        # Step 5: Presumptive success, confirm the token on the dashboard
        logger.info("Step 5: Confirming session on dashboard")
        return self.dashboard_fetcher.confirm(verdict.dashboard_url, cancel)

    def logout(self, logout_url: str, cancel: Optional[CancellationToken] = None) -> bool:
        """End the session on the server.

        Args:
            logout_url: Logout endpoint
            cancel: Cancellation token (optional)

        Returns:
            bool: True if the server answered, False if the request failed
        """
        try:
            response = self.transport.get(logout_url, cancel=cancel, follow_redirects=False)
        except TransportError as e:
            logger.error(f"Logout request failed: {e}")
            return False
        logger.info(f"Logged out (status {response.status_code})")
        return True
