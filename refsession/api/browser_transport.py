"""Playwright-backed transport that issues requests from inside a browser page.

Requests run through ``window.fetch`` in a real Chromium page, so they get the
same treatment an embedded or standalone browser runtime gives them: cookies
are managed by the browser and a manual-mode redirect comes back as an opaque
response (status 0, no headers, no body).
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode, urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ..auth.cancellation import CancellationToken
from .transport import FormData, HttpResponse, Transport, TransportError, TransportTimeout


logger = logging.getLogger(__name__)


class BrowserTransport(Transport):
    """Transport that runs every request as an in-page fetch()."""

    FETCH_SCRIPT = """
    async ({url, method, headers, body, redirect, timeoutMs}) => {
        const controller = new AbortController();
        const timer = setTimeout(() => controller.abort(), timeoutMs);
        try {
            const response = await fetch(url, {
                method,
                headers,
                body,
                redirect,
                credentials: 'include',
                cache: 'no-store',
                signal: controller.signal,
            });
            const responseHeaders = {};
            response.headers.forEach((value, key) => { responseHeaders[key] = value; });
            const text = response.type === 'opaqueredirect' ? '' : await response.text();
            return {
                ok: true,
                status: response.status,
                type: response.type,
                url: response.url,
                redirected: response.redirected,
                headers: responseHeaders,
                body: text,
            };
        } catch (error) {
            return {ok: false, aborted: error.name === 'AbortError', message: String(error)};
        } finally {
            clearTimeout(timer);
        }
    }
    """

    def __init__(
        self,
        origin_url: str,
        headless: bool = True,
        request_timeout_seconds: float = 30,
    ):
        """Initialize browser transport.

        Args:
            origin_url: Any page on the backend origin; requests run from there
            headless: Run browser in headless mode (default: True)
            request_timeout_seconds: Timeout per request (default: 30)
        """
        parsed = urlparse(origin_url)
        self.origin_url = f"{parsed.scheme}://{parsed.netloc}/"
        self.headless = headless
        self.request_timeout = request_timeout_seconds

        self._playwright = None
        self._browser = None
        self._page = None

    def _ensure_page(self):
        if self._page is None:
            logger.debug("Launching Chromium browser...")
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self.headless)
            context = self._browser.new_context()
            self._page = context.new_page()
            logger.debug(f"Opening origin page {self.origin_url}")
            self._page.goto(self.origin_url, wait_until="domcontentloaded", timeout=self.request_timeout * 1000)
        return self._page

    def get(self, url, cancel=None, follow_redirects=True, headers=None):
        return self._fetch("GET", url, cancel, follow_redirects, headers=headers)

    def post_form(self, url, data, cancel=None, follow_redirects=False, headers=None):
        form_headers = {"Content-Type": "application/x-www-form-urlencoded"}
        form_headers.update(headers or {})
        return self._fetch("POST", url, cancel, follow_redirects, headers=form_headers, body=urlencode(data))

    def _fetch(
        self,
        method: str,
        url: str,
        cancel: Optional[CancellationToken],
        follow_redirects: bool,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        cancel = cancel or CancellationToken()
        cancel.raise_if_cancelled()
        timeout = cancel.clip_timeout(self.request_timeout)

        logger.debug(f"In-page fetch {method} {url} (follow_redirects={follow_redirects})")
        try:
            page = self._ensure_page()
            result = page.evaluate(
                self.FETCH_SCRIPT,
                {
                    "url": url,
                    "method": method,
                    "headers": headers or {},
                    "body": body,
                    "redirect": "follow" if follow_redirects else "manual",
                    "timeoutMs": int(timeout * 1000),
                },
            )
        except PlaywrightTimeoutError as e:
            raise TransportTimeout(f"{method} {url} timed out in browser") from e
        except PlaywrightError as e:
            logger.error(f"Browser fetch failed: {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed in browser: {e}") from e

        cancel.raise_if_cancelled()
        return self._to_response(method, url, result)

    def _to_response(self, method: str, url: str, result: Dict[str, Any]) -> HttpResponse:
        if not result.get("ok"):
            if result.get("aborted"):
                raise TransportTimeout(f"{method} {url} timed out in browser")
            raise TransportError(f"{method} {url} failed in browser: {result.get('message')}")

        opaque = result.get("type") == "opaqueredirect"
        if opaque:
            logger.info(f"{method} {url} -> opaque redirect (target hidden by browser)")
        else:
            logger.debug(f"{method} {url} -> {result.get('status')} ({result.get('type')})")

        return HttpResponse(
            status_code=result.get("status", 0),
            url=result.get("url") or url,
            headers=result.get("headers") or {},
            opaque_redirect=opaque,
            redirected=bool(result.get("redirected")),
            text=result.get("body") or "",
        )

    def close(self) -> None:
        logger.debug("Closing browser...")
        try:
            if self._browser is not None:
                self._browser.close()
        finally:
            if self._playwright is not None:
                self._playwright.stop()
            self._browser = None
            self._page = None
            self._playwright = None
