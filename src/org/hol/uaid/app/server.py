import logging
from typing import Optional

import aiohttp
from aiohttp import web
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from org.hol.uaid.app.config import (
    SessionAppKey,
    Settings,
    SettingsAppKey,
    UAIDClientAppKey,
)
from org.hol.uaid.app.handlers.internal import handle_internal_alive
from org.hol.uaid.app.handlers.resolve import handle_resolve
from org.hol.uaid.resolve.client import UAIDClient

logger = logging.getLogger(__name__)


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    app[SessionAppKey] = aiohttp.ClientSession()
    app[UAIDClientAppKey] = UAIDClient.from_settings(settings, app[SessionAppKey])

    yield

    logger.info("Shutting down")
    await app[SessionAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=True,
            integrations=[AioHttpIntegration()],
        )
    app = web.Application(middlewares=[sentry_middleware])

    app[SettingsAppKey] = settings

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/resolve/{uaid:.+}", handle_resolve),
        ]
    )

    app.cleanup_ctx.append(background_tasks)

    return app
