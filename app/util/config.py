"""
Process configuration.

cfg-file/arg-parse/click is overkill for the few things that need to be configured.
k8s makes it trivial to define env-vars so we'll just use that.
Everything is read once at startup into a frozen ModemConfig that gets handed to each component.
"""

from dataclasses import dataclass
from os import getenv

from aiohttp import BasicAuth
from err.exceptions import ConfigError
from util.const import (
    CONN_STATUS_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    LOGOUT_ENDPOINT,
    LoginStrategy,
)

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ModemConfig:
    host: str = "192.168.100.1"
    # support docs don't indicate that the username _can_ be changed
    username: str = "admin"
    # Password defaults to the last 8 digits of the SN; impossible to guess so require user provides
    password: str | None = None
    scheme: str = "https"
    login_strategy: LoginStrategy = LoginStrategy.QUERY
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = 0.0
    # Modem ships a self-signed cert
    verify_tls: bool = False
    tls_ciphers: str | None = None
    request_timeout: float | None = None
    listen_host: str = "0.0.0.0"
    listen_port: int = 3030

    @classmethod
    def from_env(cls) -> "ModemConfig":
        """Build config from env-vars. Raises ConfigError on values that can't be parsed.

        A missing MODEM_PASSWORD is NOT an error here; it's reported on every health check instead.
        """
        strategy = getenv("MODEM_LOGIN_STRATEGY", LoginStrategy.QUERY.value).lower()
        try:
            login_strategy = LoginStrategy(strategy)
        except ValueError as e:
            _valid = [s.value for s in LoginStrategy]
            raise ConfigError(
                f"MODEM_LOGIN_STRATEGY must be one of {_valid}, got {strategy!r}", e
            ) from e

        timeout = getenv("MODEM_REQUEST_TIMEOUT_SECONDS")
        return cls(
            host=getenv("MODEM_IP", "192.168.100.1"),
            username=getenv("MODEM_USER", "admin"),
            password=getenv("MODEM_PASSWORD", None),
            scheme=getenv("MODEM_SCHEME", "https"),
            login_strategy=login_strategy,
            max_retries=_parse_number(
                "MODEM_MAX_RETRIES", int, str(DEFAULT_MAX_RETRIES)
            ),
            retry_delay=_parse_number("MODEM_RETRY_DELAY_SECONDS", float, "0"),
            verify_tls=getenv("MODEM_VERIFY_TLS", "false").lower() in _TRUTHY,
            tls_ciphers=getenv("MODEM_TLS_CIPHERS") or None,
            request_timeout=(
                _parse_number("MODEM_REQUEST_TIMEOUT_SECONDS", float, timeout)
                if timeout
                else None
            ),
            listen_host=getenv("HEALTH_HOST", "0.0.0.0"),
            listen_port=_parse_number("HEALTH_PORT", int, "3030"),
        )

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    @property
    def login_url(self) -> str:
        """Status page URL with the login fragment tacked on.

        For reasons that I don't understand, the modem wants the base64 PORTION of the Basic Auth string
        in the URL *and* the full Basic Auth header.
        """
        if self.password is None:
            raise ConfigError("MODEM_PASSWORD is not set")
        _auth_token = BasicAuth(self.username, self.password).encode().split(" ")[1]
        return f"{self.status_url}?login_{_auth_token}"

    @property
    def status_url(self) -> str:
        return f"{self.base_url}{CONN_STATUS_ENDPOINT}"

    @property
    def logout_url(self) -> str:
        return f"{self.base_url}{LOGOUT_ENDPOINT}"


def _parse_number(name, cast, default):
    raw = getenv(name, default)
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}", e) from e
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value
