import logging
from enum import Enum

# Unlikely that the modem cares but it's easy enough to pretend to be a browser just in case
REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:123.4) Gecko/20100101 Firefox/123.4",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "X-Requested-With": "XMLHttpRequest",
    "Connection": "keep-alive",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}

# The login XHR in the modem's own JS sends this even though it's a GET with no body
LOGIN_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"

CONN_STATUS_ENDPOINT = "/cmconnectionstatus.html"
LOGOUT_ENDPOINT = "/logout.html"

# Observed flakiness under concurrent access; the modem often hands back the login page instead
DEFAULT_MAX_RETRIES = 15


class LogLevel(Enum):
    """Simple enum of supported log levels for easy validation"""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class LoginStrategy(Enum):
    """How the session token is handed back to the modem on the status request.

    Differs between firmware revisions.
    """

    # cmconnectionstatus.html?ct_<token>
    QUERY = "query"
    # Cookie: credential=<token>, sent after an explicit Host header
    COOKIE = "cookie"
