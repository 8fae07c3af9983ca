"""
Login handshake.

The SB8200 (firmware 1.01.009.47+) wants a GET to the status page with `?login_<base64 user:pass>` tacked on AND
a matching Basic Auth header. If credentials are accepted, the response body is a session token; there's no JSON
or HTML wrapped around it. The token is good for exactly one request.
"""

import asyncio
from dataclasses import dataclass, field

import structlog
from aiohttp import BasicAuth, ClientError, ClientSession
from err.exceptions import ConfigError, NetworkError, ServerError
from modem import metrics
from util.config import ModemConfig
from util.const import LOGIN_CONTENT_TYPE

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginSession:
    """What one login hands back. Only good for the single status request that follows."""

    token: str
    # Whatever the modem set with Set-Cookie on the login response
    cookies: dict[str, str] = field(default_factory=dict)


class Authenticator:
    """Gets a fresh session token from the modem on every call."""

    def __init__(self, session: ClientSession, config: ModemConfig):
        self.session = session
        self.config = config

    async def get_token(self) -> LoginSession:
        """Log in and return the session token plus any cookies the modem set.

        Raises:
            ConfigError: no password configured. Nothing is sent to the modem.
            ServerError: modem answered with a non 200/OK.
            NetworkError: couldn't talk to the modem at all.
        """
        if self.config.password is None:
            raise ConfigError("MODEM_PASSWORD is not set; can't log in to modem")

        try:
            with metrics.s_meta_scrape_time.labels("login").time():
                async with self.session.get(
                    self.config.login_url,
                    auth=BasicAuth(self.config.username, self.config.password),
                    headers={"Content-Type": LOGIN_CONTENT_TYPE},
                ) as resp:
                    metrics.c_meta_scrape_result.labels(resp.status, "login").inc()
                    if not 200 <= resp.status < 300:
                        raise ServerError(
                            _login_failure_message(resp.status),
                            resp.status,
                            f"{resp.status} {resp.reason}",
                        )
                    try:
                        token = await resp.text()
                    except UnicodeDecodeError as e:
                        raise ServerError("Bad data in login response", resp.status, e) from e
                    # Some firmware also hands out a session cookie that has to come back with the token.
                    # The shared client has no cookie jar so these only live as long as this attempt.
                    cookies = {name: morsel.value for name, morsel in resp.cookies.items()}
        except (ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Failed to log in to {self.config.base_url}", e) from e

        log.debug("Session token", token=token, cookies=list(cookies))
        return LoginSession(token, cookies)


def _login_failure_message(status: int) -> str:
    # In testing, i've only ever seen 401 and 200s
    # ALSO interesting, JUST AFTER REBOOT, 401 with correct credentials
    if status == 401:
        return (
            "Modem indicated authentication details are incorrect. "
            f"Check for extra/incorrect quotes in your env-vars? Status={status}."
        )
    return f"Failed to log in. Status={status}."
