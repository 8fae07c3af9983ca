"""Failure states observed while talking to the modem.

Each error carries a short human label; the health endpoint prefixes its plain-text response body with it.
"""


class ModemError(Exception):
    """Base for everything that can go wrong during one health check."""

    label = "Modem error"

    def __init__(self, message, cause=None):
        super().__init__(message, cause)
        self.message = message
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return f"{self.label}: {self.message}"
        return f"{self.label}: {self.message} ({self.cause!r})"


class ConfigError(ModemError):
    """Exception for missing/invalid configuration. Retrying can't fix this."""

    label = "Configuration error"


class NetworkError(ModemError):
    """Exception for transport failures reaching the modem."""

    label = "Network error"


class ServerError(ModemError):
    """Exception for non-200/OK responses from modem."""

    label = "Server error"

    def __init__(self, message, status_code=None, cause=None):
        super().__init__(message, cause)
        self.status_code = status_code


class ExtractionError(ModemError):
    """Page came back but doesn't look like the status page. Usually the login page."""

    label = "No status found"
