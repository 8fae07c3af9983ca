"""The one long-lived HTTP client used for every request to the modem."""

import ssl

import structlog
from aiohttp import ClientSession, ClientTimeout, DummyCookieJar, TCPConnector
from util.config import ModemConfig
from util.const import REQUEST_HEADERS

log = structlog.get_logger(__name__)


def build_ssl_context(config: ModemConfig) -> ssl.SSLContext:
    """Modem has a self-signed cert and very old TLS so by default we bend over backwards to pretend it's 2010."""
    if config.verify_tls:
        context = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
    else:
        # pylint: disable = protected-access / W0212
        context = ssl._create_unverified_context(
            protocol=ssl.PROTOCOL_TLS_CLIENT,
            purpose=ssl.Purpose.SERVER_AUTH,
            check_hostname=False,
        )
    # Some firmware builds only negotiate AES128-GCM-SHA256
    if config.tls_ciphers is not None:
        context.set_ciphers(config.tls_ciphers)
    return context


def create_client_session(config: ModemConfig) -> ClientSession:
    """Must be called with a running event loop.

    Session token is always presented explicitly so nothing should come out of a cookie jar.
    A real jar would also leak one health check's session into the next one.
    """
    log.debug(
        "Setting up connection to modem...",
        base_url=config.base_url,
        verify_tls=config.verify_tls,
    )
    # Otherwise leave aiohttp's default timeout alone
    kwargs = {}
    if config.request_timeout is not None:
        kwargs["timeout"] = ClientTimeout(total=config.request_timeout)
    return ClientSession(
        headers=REQUEST_HEADERS,
        cookie_jar=DummyCookieJar(),
        connector=TCPConnector(ssl=build_ssl_context(config)),
        **kwargs,
    )
