"""HTTP transports used by the login flow.

A transport issues one request at a time and hands back an ``HttpResponse``
describing everything the outcome classifier may look at: status, redirect
flags, ``Location`` header, MIME type and the (lazily read) body.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from ..auth.cancellation import CancellationToken


logger = logging.getLogger(__name__)


FormData = List[Tuple[str, str]]


def origin_of(url: str) -> str:
    """Scheme and host of a URL, e.g. 'https://volleymanager.volleyball.ch'."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


class TransportError(Exception):
    """Raised when a request could not be completed at the transport level."""


class TransportTimeout(TransportError):
    """Raised when a request timed out."""


class HttpResponse:
    """Transport-neutral view of one HTTP response."""

    def __init__(
        self,
        status_code: int,
        url: str = "",
        headers: Optional[Mapping[str, str]] = None,
        opaque_redirect: bool = False,
        redirected: bool = False,
        text: Optional[str] = None,
        body_loader: Optional[Callable[[], str]] = None,
    ):
        """Initialize response.

        Args:
            status_code: HTTP status (0 for opaque redirects)
            url: Final URL of the response
            headers: Response headers, empty when the client hides them
            opaque_redirect: The client saw a redirect but cannot inspect it
            redirected: The client followed one or more redirects
            text: Body text, if already read
            body_loader: Callable returning the body text, read on first access
        """
        self.status_code = status_code
        self.url = url
        self.headers = CaseInsensitiveDict(headers or {})
        self.opaque_redirect = opaque_redirect
        self.redirected = redirected
        self._text = text
        self._body_loader = body_loader

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("Location")

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def mime_type(self) -> str:
        return self.content_type.split(";")[0].strip().lower()

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self._body_loader() if self._body_loader else ""
        return self._text

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.text)

    def __repr__(self) -> str:
        return (
            f"HttpResponse(status={self.status_code}, opaque_redirect={self.opaque_redirect}, "
            f"location={self.location!r}, mime_type={self.mime_type!r})"
        )


class Transport(ABC):
    """Issues requests for one login attempt, sharing one cookie jar."""

    @abstractmethod
    def get(
        self,
        url: str,
        cancel: Optional[CancellationToken] = None,
        follow_redirects: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResponse:
        """Issue a GET request.

        Raises:
            TransportError: If the request fails
            TransportTimeout: If the request times out
            AttemptCancelled: If the attempt is cancelled
        """

    @abstractmethod
    def post_form(
        self,
        url: str,
        data: FormData,
        cancel: Optional[CancellationToken] = None,
        follow_redirects: bool = False,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResponse:
        """Issue a form-encoded POST request.

        Raises:
            TransportError: If the request fails
            TransportTimeout: If the request times out
            AttemptCancelled: If the attempt is cancelled
        """

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RequestsTransport(Transport):
    """Transport backed by ``requests.Session`` with explicit redirect control."""

    # Set by the CORS proxy when cookies cannot cross origins
    SESSION_TOKEN_HEADER = "X-Session-Token"

    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
        "User-Agent": "Mozilla/5.0 refsession/1.0",
    }

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_timeout_seconds: float = 30,
    ):
        """Initialize transport.

        Args:
            session: requests session to use (default: new session)
            request_timeout_seconds: Timeout per request (default: 30)
        """
        self.session = session or requests.Session()
        self.session.headers.update(self.DEFAULT_HEADERS)
        self.request_timeout = request_timeout_seconds
        # Proxy session tokens keyed by the origin that issued them
        self.session_tokens: Dict[str, str] = {}

    def get(self, url, cancel=None, follow_redirects=True, headers=None):
        return self._request("GET", url, cancel, follow_redirects, headers=headers)

    def post_form(self, url, data, cancel=None, follow_redirects=False, headers=None):
        form_headers = {"Content-Type": "application/x-www-form-urlencoded"}
        form_headers.update(headers or {})
        return self._request("POST", url, cancel, follow_redirects, headers=form_headers, data=data)

    def _request(
        self,
        method: str,
        url: str,
        cancel: Optional[CancellationToken],
        follow_redirects: bool,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[FormData] = None,
    ) -> HttpResponse:
        cancel = cancel or CancellationToken()
        cancel.raise_if_cancelled()
        timeout = cancel.clip_timeout(self.request_timeout)

        request_headers = dict(headers or {})
        token = self.session_tokens.get(origin_of(url))
        if token:
            request_headers[self.SESSION_TOKEN_HEADER] = token

        logger.debug(f"{method} {url} (follow_redirects={follow_redirects}, timeout={timeout:.1f}s)")
        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                data=data,
                timeout=timeout,
                allow_redirects=follow_redirects,
            )
        except requests.Timeout as e:
            logger.warning(f"Request timeout ({timeout:.1f}s): {method} {url}")
            raise TransportTimeout(f"{method} {url} timed out") from e
        except requests.RequestException as e:
            logger.error(f"Request failed: {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed: {e}") from e

        cancel.raise_if_cancelled()
        logger.debug(
            f"{method} {url} -> {response.status_code} "
            f"(location={response.headers.get('Location')}, redirects={len(response.history)})"
        )
        self._capture_session_token(response, url)

        return HttpResponse(
            status_code=response.status_code,
            url=response.url or url,
            headers=response.headers,
            redirected=bool(response.history),
            body_loader=lambda: response.text,
        )

    def _capture_session_token(self, response: requests.Response, url: str) -> None:
        """Remember the proxy session token for the origin that sent it.

        The token is only relayed on later requests to that same origin.
        """
        token = response.headers.get(self.SESSION_TOKEN_HEADER)
        if not token:
            return
        origin = origin_of(response.url or url)
        if self.session_tokens.get(origin) != token:
            logger.debug(f"Captured proxy session token header for {origin}")
            self.session_tokens[origin] = token

    def close(self) -> None:
        self.session.close()
