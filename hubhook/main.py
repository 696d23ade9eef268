from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hubhook.core.config import Settings
from hubhook.core.logging import configure_structlog
from hubhook.core.middleware import RequestIdMiddleware
from hubhook.core.sentry import init_sentry
from hubhook.engine.channel import TriggerChannel
from hubhook.engine.executor import UpdateExecutor
from hubhook.github.router import router as webhook_router
from hubhook.projects.registry import Conf


def create_app(
    conf: Conf,
    settings: Optional[Settings] = None,
    channel: Optional[TriggerChannel] = None,
    start_executor: bool = True,
) -> FastAPI:
    """Build the webhook application around an already-loaded `conf`.

    The update executor runs for the lifetime of the app: it is started by
    the lifespan handler and stopped (after draining queued triggers) on
    shutdown. Pass `start_executor=False` to consume `channel` yourself.
    """
    settings = settings or Settings()
    channel = channel or TriggerChannel()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        executor = None
        if start_executor:
            executor = UpdateExecutor(conf, channel)
            executor.start()
        app.state.executor = executor
        yield
        if executor is not None:
            executor.stop()

    _app = FastAPI(
        title="hubhook",
        description="GitHub webhook receiver that updates checkouts and runs build commands",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    _app.state.conf = conf
    _app.state.settings = settings
    _app.state.channel = channel

    # Request ID: inject / forward X-Request-ID and bind to ContextVar
    _app.add_middleware(RequestIdMiddleware)

    # ---------------------------------------------------------------------------
    # Sentry: initialised here so it captures startup errors too
    # ---------------------------------------------------------------------------
    init_sentry(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
    )

    configure_structlog(debug=settings.debug)

    # Catch-all: every path is a webhook endpoint.
    _app.include_router(webhook_router)

    return _app
