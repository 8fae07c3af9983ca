"""
One full authenticated trip to the modem: log in, fetch the connection status page, parse it, log out.
"""

import asyncio

import structlog
from aiohttp import ClientError, ClientSession
from err.exceptions import ExtractionError, NetworkError, ServerError
from modem import metrics, parse
from modem.auth import Authenticator, LoginSession
from modem.models import StartupProcedure
from util.config import ModemConfig
from util.const import LoginStrategy

log = structlog.get_logger(__name__)


def build_status_request(
    config: ModemConfig, login: LoginSession
) -> tuple[str, dict[str, str]]:
    """URL and extra headers for the status page request, depending on how this firmware wants the token.

    Cookies the modem set on login are always sent back.

    COOKIE: the token also goes in as the `credential` cookie. The modem parses request headers
    order-sensitively and ignores the credential cookie (bouncing us back to the login page) unless
    Host shows up BEFORE Cookie.
    aiohttp writes headers out in insertion order so Host has to be added first. Do not reorder.
    """
    if config.login_strategy is LoginStrategy.QUERY:
        url = f"{config.status_url}?ct_{login.token}"
        return url, _cookie_header(login.cookies)

    cookies = {"credential": login.token}
    cookies.update((k, v) for k, v in login.cookies.items() if k != "credential")
    headers = {}
    headers["Host"] = config.host
    headers.update(_cookie_header(cookies))
    return config.status_url, headers


def _cookie_header(cookies: dict[str, str]) -> dict[str, str]:
    if not cookies:
        return {}
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


class StatusFetcher:
    """Makes a single attempt at getting the StartupProcedure; retrying is somebody else's job."""

    def __init__(
        self,
        session: ClientSession,
        config: ModemConfig,
        authenticator: Authenticator | None = None,
    ):
        self.session = session
        self.config = config
        self.authenticator = authenticator or Authenticator(session, config)
        # Keep a reference to in-flight logouts or the event loop may garbage collect them
        self._logouts: set[asyncio.Task] = set()

    async def fetch(self) -> StartupProcedure:
        """Raises whatever the Authenticator raises, plus ServerError / NetworkError / ExtractionError."""
        login = await self.authenticator.get_token()
        url, headers = build_status_request(self.config, login)

        log.debug("Done with login... attempting to get connection status data!")
        html = await self._get_status_page(url, headers)
        procedure = parse.parse_startup_procedure(html)

        self._schedule_logout(headers)
        return procedure

    async def drain(self) -> None:
        """Wait for any logouts still in flight. Called on shutdown before the client session goes away."""
        if self._logouts:
            await asyncio.gather(*list(self._logouts))

    async def _get_status_page(self, url: str, headers: dict[str, str]) -> str:
        # If this worked, it'll take about 10s for the data to come back!
        try:
            with metrics.s_meta_scrape_time.labels("connection_data").time():
                async with self.session.get(url, headers=headers) as resp:
                    metrics.c_meta_scrape_result.labels(resp.status, "connection_data").inc()
                    if not 200 <= resp.status < 300:
                        raise ServerError(
                            f"Failed to get connection status. Status={resp.status}",
                            resp.status,
                            f"{resp.status} {resp.reason}",
                        )
                    try:
                        return await resp.text()
                    except UnicodeDecodeError as e:
                        raise ExtractionError("Bad data in connection status page", e) from e
        except (ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(
                f"Failed to get connection status from {self.config.base_url}", e
            ) from e

    def _schedule_logout(self, headers: dict[str, str]) -> None:
        task = asyncio.create_task(self._logout(headers))
        self._logouts.add(task)
        task.add_done_callback(self._logouts.discard)

    async def _logout(self, headers: dict[str, str]) -> None:
        # Skipping logout eventually gets the modem stuck rejecting every login as "incorrect password".
        # Failing to log out must never fail the health check though.
        try:
            with metrics.s_meta_scrape_time.labels("logout").time():
                async with self.session.get(self.config.logout_url, headers=headers) as resp:
                    metrics.c_meta_scrape_result.labels(resp.status, "logout").inc()
                    log.debug("Logged out", status=resp.status)
        # pylint: disable=broad-exception-caught
        except Exception as e:
            log.debug("Logout failed, ignoring", error=e)
