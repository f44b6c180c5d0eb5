"""Sample VolleyManager pages, response builders and a scripted transport for tests."""

from typing import Dict, List, Optional

from refsession.api.transport import HttpResponse, Transport


BASE_URL = "https://volleymanager.example.ch"
LOGIN_PAGE_URL = f"{BASE_URL}/login"
AUTH_URL = f"{BASE_URL}/sportmanager.security/authentication/authenticate"
DASHBOARD_URL = f"{BASE_URL}/sportmanager.volleyball/main/dashboard"
LOGOUT_URL = f"{BASE_URL}/logout"

TRUSTED_PROPERTIES = "a:1:{s:16:__authentication;a:1:{s:4:Neos;i:1;}}7f3c9e0d1b"

LOGIN_PAGE_HTML = f"""<!DOCTYPE html>
<html lang="de">
<head><title>VolleyManager - Login</title></head>
<body>
<form action="/sportmanager.security/authentication/authenticate" method="post">
  <input type="hidden" name="__referrer[@package]" value="SportManager.Volleyball" />
  <input type="hidden" name="__referrer[@subpackage]" value="" />
  <input type="hidden" name="__referrer[@controller]" value="Public" />
  <input type="hidden" name="__referrer[@action]" value="login" />
  <input type="hidden" name="__referrer[arguments]" value="YTowOnt9" />
  <input type="hidden" name="__trustedProperties" value="{TRUSTED_PROPERTIES}" />
  <input id="username" type="text" name="__authentication[Neos][Flow][Security][Authentication][Token][UsernamePassword][username]" />
  <input id="password" type="password" name="__authentication[Neos][Flow][Security][Authentication][Token][UsernamePassword][password]" />
  <button type="submit">Anmelden</button>
</form>
</body>
</html>
"""

LOGIN_ERROR_HTML = LOGIN_PAGE_HTML.replace(
    "<body>",
    '<body>\n<v-snackbar color="error" :value="true">Benutzername oder Passwort falsch</v-snackbar>',
)

SECOND_FACTOR_HTML = """<!DOCTYPE html>
<html lang="de">
<body>
<form action="/sportmanager.security/authentication/authenticate" method="post">
  <input type="text" name="secondFactorToken" autocomplete="one-time-code" />
  <button type="submit">Bestätigen</button>
</form>
</body>
</html>
"""

DASHBOARD_HTML = """<!DOCTYPE html>
<html lang="de" data-csrf-token="abc123">
<head><title>VolleyManager - Dashboard</title></head>
<body><div id="app">Meine Einsätze</div></body>
</html>
"""

DASHBOARD_WITHOUT_TOKEN_HTML = """<!DOCTYPE html>
<html lang="de">
<head><title>VolleyManager - Dashboard</title></head>
<body><div id="app" data-csrf-token="">Meine Einsätze</div></body>
</html>
"""


class FakeTransport(Transport):
    """Transport returning scripted responses and recording every call."""

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict] = []

    def queue(self, *responses) -> "FakeTransport":
        self.responses.extend(responses)
        return self

    def _next(self, call: Dict) -> HttpResponse:
        self.calls.append(call)
        cancel = call.get("cancel")
        if cancel is not None:
            cancel.raise_if_cancelled()
        if not self.responses:
            raise AssertionError(f"Unexpected request: {call['method']} {call['url']}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, cancel=None, follow_redirects=True, headers=None):
        return self._next({
            "method": "GET",
            "url": url,
            "cancel": cancel,
            "follow_redirects": follow_redirects,
            "headers": headers,
        })

    def post_form(self, url, data, cancel=None, follow_redirects=False, headers=None):
        return self._next({
            "method": "POST",
            "url": url,
            "data": data,
            "cancel": cancel,
            "follow_redirects": follow_redirects,
            "headers": headers,
        })


def html_response(html: str, status_code: int = 200, url: str = "", **kwargs) -> HttpResponse:
    return HttpResponse(
        status_code=status_code,
        url=url,
        headers={"Content-Type": "text/html; charset=UTF-8"},
        text=html,
        **kwargs,
    )


def json_response(body: str, status_code: int = 200) -> HttpResponse:
    return HttpResponse(
        status_code=status_code,
        url=AUTH_URL,
        headers={"Content-Type": "application/json"},
        text=body,
    )


def redirect_response(location: str, status_code: int = 303) -> HttpResponse:
    return HttpResponse(
        status_code=status_code,
        url=AUTH_URL,
        headers={"Location": location},
        text="",
    )


def opaque_redirect_response() -> HttpResponse:
    return HttpResponse(status_code=0, url=AUTH_URL, opaque_redirect=True, text="")

