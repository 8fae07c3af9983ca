#!/usr/bin/env python3
"""
Main / entry point for the SB family modem health endpoint.

"""
import sys
from os import getenv

import structlog
from aiohttp import web
from err.exceptions import ConfigError
from health.server import create_app
from util.config import ModemConfig
from util.const import LogLevel

if getenv("LOG_LEVEL") not in LogLevel.__members__ or getenv("LOG_LEVEL") is None:
    print(f"Defaulting to {LogLevel.INFO} log level")
    log_level = LogLevel.INFO
else:
    log_level = LogLevel[getenv("LOG_LEVEL")]  # type: ignore
    print(f"Using log level {log_level.value}")


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(log_level.value)
)

log = structlog.get_logger(__name__)


def main():
    """Main entry point."""
    log.info("Starting up")
    try:
        config = ModemConfig.from_env()
    except ConfigError as e:
        log.error("Bad configuration", error=str(e))
        sys.exit(1)

    # Don't bail; every health check will report the missing password instead
    if config.password is None:
        log.error("Missing MODEM_PASSWORD; /health will fail until it is set")

    log.info(
        "Health server starting",
        modem=config.base_url,
        login_strategy=config.login_strategy.value,
        port=config.listen_port,
    )
    web.run_app(
        create_app(config),
        host=config.listen_host,
        port=config.listen_port,
        print=None,
    )


if __name__ == "__main__":
    main()
