import json
import logging
import sentry_sdk
from aiohttp import web

from org.hol.uaid.app.config import SettingsAppKey, UAIDClientAppKey

logger = logging.getLogger(__name__)


async def handle_resolve(request: web.Request):
    """
    Resolve the UAID in the path and return the profile as camelCase JSON.

    An optional ``profile`` query parameter restricts resolution to a single
    profile id. Protocol failures are reported inside the result body with
    status 200; a requested profile that produced nothing returns 404.
    """
    uaid = request.match_info["uaid"].strip()
    profile_id = request.query.get("profile", "").strip()
    client = request.app[UAIDClientAppKey]

    try:
        if profile_id:
            result = await client.resolve_profile(uaid, profile_id)
        else:
            result = await client.resolve(uaid)
    except Exception as e:
        logger.exception("Exception resolving uaid %s", uaid)
        sentry_sdk.capture_exception(e)
        settings = request.app[SettingsAppKey]
        body = {"error": "Internal Server Error", "error_type": type(e).__name__}
        if settings.debug:
            body["error_message"] = str(e)
        raise web.HTTPInternalServerError(
            body=json.dumps(body), content_type="application/json"
        ) from e

    if result is None:
        raise web.HTTPNotFound(
            body=json.dumps(
                {"error": "No result", "uaid": uaid, "profile": profile_id}
            ),
            content_type="application/json",
        )

    return web.json_response(result.model_dump(mode="json", by_alias=True))
