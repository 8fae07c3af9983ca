"""
aiohttp app exposing /health (and /metrics for the meta metrics).

Success is JSON, failure is a plain-text diagnostic. Keep it that way; existing checks depend on it.
"""

from collections.abc import Awaitable, Callable
from http import HTTPStatus

import structlog
from aiohttp import web
from err.exceptions import ModemError, NetworkError
from modem.client import create_client_session
from modem.models import StartupProcedure
from modem.retry import RetryController, RetryState
from modem.scrape import StatusFetcher
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from util.config import ModemConfig

log = structlog.get_logger(__name__)

CONFIG_KEY = web.AppKey("config", ModemConfig)
FETCH_KEY = web.AppKey("fetch", Callable[[], Awaitable[StartupProcedure]])


def create_app(
    config: ModemConfig,
    fetch: Callable[[], Awaitable[StartupProcedure]] | None = None,
) -> web.Application:
    """Build the app. Pass `fetch` to skip creating a real client session (tests)."""
    app = web.Application()
    app[CONFIG_KEY] = config
    if fetch is None:
        app.cleanup_ctx.append(_modem_client)
    else:
        app[FETCH_KEY] = fetch
    app.router.add_get("/health", handle_health)
    app.router.add_get("/metrics", handle_metrics)
    return app


async def _modem_client(app: web.Application):
    """One client session / connection pool for the life of the process."""
    config = app[CONFIG_KEY]
    session = create_client_session(config)
    fetcher = StatusFetcher(session, config)
    app[FETCH_KEY] = fetcher.fetch
    yield
    await fetcher.drain()
    await session.close()


def status_for(error: ModemError) -> int:
    if isinstance(error, NetworkError):
        return HTTPStatus.BAD_GATEWAY.value
    return HTTPStatus.INTERNAL_SERVER_ERROR.value


async def handle_health(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    controller = RetryController(
        request.app[FETCH_KEY],
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
    )
    try:
        outcome = await controller.run()
    # pylint: disable=broad-exception-caught
    except Exception as e:
        log.exception("Unforeseen exception during health check")
        return web.Response(
            status=HTTPStatus.INTERNAL_SERVER_ERROR.value, text=f"Unexpected error: {e!r}"
        )

    if outcome.state is RetryState.SUCCEEDED:
        return web.json_response(outcome.result.to_dict())

    text = str(outcome.error)
    if outcome.state is RetryState.EXHAUSTED:
        text = f"{text} (gave up after {outcome.attempts} attempts)"
    return web.Response(status=status_for(outcome.error), text=text)


async def handle_metrics(_request: web.Request) -> web.Response:
    return web.Response(
        body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST}
    )
