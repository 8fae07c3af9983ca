"""Pytest fixtures: a fake SB8200 served by aiohttp's TestServer.

The fake implements the login handshake (`?login_<b64>` + Basic Auth -> token in the body),
both ways of presenting the token, and logout. Knobs on FakeModem let tests make it misbehave.
"""

from __future__ import annotations

import socket
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import BasicAuth, web
from aiohttp.test_utils import TestServer

from modem.client import create_client_session
from modem.models import StartupProcedure, StatusEntry
from util.config import ModemConfig
from util.const import LoginStrategy

FIXTURES_PATH = Path(__file__).parent / "fixtures"

USERNAME = "admin"
# base64("admin:password1") has no padding, keeps query strings simple
PASSWORD = "password1"
TOKEN = "c2Vzc2lvbnRva2Vu"

OK = StatusEntry("OK", "Operational")
PROCEDURE = StartupProcedure(OK, OK, OK, OK, OK, OK)


def load_fixture(name: str) -> str:
    return (FIXTURES_PATH / name).read_text()


def find_free_port() -> int:
    """A port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


class StubFetch:
    """Stands in for StatusFetcher.fetch. Raises/returns the given outcomes in order; the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeModem:
    """Mimics the SB8200's web UI closely enough to exercise the client."""

    def __init__(self, strategy: LoginStrategy = LoginStrategy.QUERY):
        self.strategy = strategy
        self.host = ""
        self.status_html = load_fixture("cmconnectionstatus.html")
        self.login_html = load_fixture("login.html")
        # Serve the login page this many times even with a good token
        self.wrong_pages = 0
        self.login_status: int | None = None
        self.status_code = 200
        self.logout_status = 200
        # (name, value) set on login and then required on the status page
        self.login_cookie: tuple[str, str] | None = None

        self.logins = 0
        self.status_requests = 0
        self.logouts = 0
        self.status_raw_headers: list[tuple[tuple[bytes, bytes], ...]] = []
        self.logout_cookies: list[dict[str, str]] = []

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/cmconnectionstatus.html", self.handle_status)
        app.router.add_get("/logout.html", self.handle_logout)
        return app

    @property
    def total_requests(self) -> int:
        return self.logins + self.status_requests + self.logouts

    async def handle_status(self, request: web.Request) -> web.Response:
        query = request.rel_url.raw_query_string
        if query.startswith("login_"):
            return self._login(request, query)

        self.status_requests += 1
        self.status_raw_headers.append(request.raw_headers)
        if self.status_code != 200:
            return web.Response(status=self.status_code, text="error")
        if not self._has_valid_token(request) or self.wrong_pages > 0:
            self.wrong_pages = max(self.wrong_pages - 1, 0)
            return web.Response(text=self.login_html, content_type="text/html")
        return web.Response(text=self.status_html, content_type="text/html")

    async def handle_logout(self, request: web.Request) -> web.Response:
        self.logouts += 1
        self.logout_cookies.append(dict(request.cookies))
        return web.Response(status=self.logout_status, text=self.login_html, content_type="text/html")

    def _login(self, request: web.Request, query: str) -> web.Response:
        self.logins += 1
        if self.login_status is not None:
            return web.Response(status=self.login_status, text="error")
        expected = BasicAuth(USERNAME, PASSWORD).encode()
        if request.headers.get("Authorization") != expected or query != f"login_{expected.split(' ')[1]}":
            return web.Response(status=401, text="Unauthorized")
        resp = web.Response(text=TOKEN)
        if self.login_cookie is not None:
            resp.set_cookie(*self.login_cookie)
        return resp

    def _has_valid_token(self, request: web.Request) -> bool:
        if self.login_cookie is not None:
            name, value = self.login_cookie
            if request.cookies.get(name) != value:
                return False

        if self.strategy is LoginStrategy.QUERY:
            return request.rel_url.raw_query_string == f"ct_{TOKEN}"

        names = [name.lower() for name, _ in request.raw_headers]
        if b"host" not in names or b"cookie" not in names:
            return False
        # Real firmware ignores the cookie unless Host comes first
        if names.index(b"host") > names.index(b"cookie"):
            return False
        return (
            request.headers.get("Host") == self.host
            and request.cookies.get("credential") == TOKEN
        )


@pytest.fixture
def status_html() -> str:
    return load_fixture("cmconnectionstatus.html")


@pytest.fixture
def login_html() -> str:
    return load_fixture("login.html")


@pytest_asyncio.fixture
async def fake_modem():
    modem = FakeModem()
    server = TestServer(modem.app(), host="127.0.0.1")
    await server.start_server()
    modem.host = f"127.0.0.1:{server.port}"
    yield modem
    await server.close()


@pytest.fixture
def modem_config(fake_modem) -> ModemConfig:
    return ModemConfig(
        host=fake_modem.host,
        username=USERNAME,
        password=PASSWORD,
        scheme="http",
        max_retries=3,
    )


@pytest.fixture
def unreachable_config() -> ModemConfig:
    return ModemConfig(
        host=f"127.0.0.1:{find_free_port()}",
        username=USERNAME,
        password=PASSWORD,
        scheme="http",
    )


@pytest_asyncio.fixture
async def client_session(modem_config):
    session = create_client_session(modem_config)
    yield session
    await session.close()
