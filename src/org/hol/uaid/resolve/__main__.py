from typing import List
import argparse
import aiohttp
import asyncio
import json
import logging

import sentry_sdk

from org.hol.uaid.app.config import Settings
from org.hol.uaid.resolve.client import UAIDClient

logger = logging.getLogger(__name__)


async def realMain() -> None:
    parser = argparse.ArgumentParser(prog="resolve", description="Resolve UAIDs")
    parser.add_argument("uaid", nargs="+", help="The UAID(s) to resolve.")
    parser.add_argument(
        "--profile",
        default=None,
        help="Only resolve with this profile id, e.g. hcs-14.profile.ans-dns-web.",
    )
    parser.add_argument(
        "--plc-hostname",
        default=None,
        help="The PLC hostname to use for resolving did-method-plc DIDs.",
    )
    parser.add_argument(
        "--require-full-resolution",
        action="store_true",
        help="Fail DNS bindings that cannot be followed up to an endpoint.",
    )

    args = vars(parser.parse_args())

    overrides = {}
    if args.get("plc_hostname"):
        overrides["plc_hostname"] = args["plc_hostname"]
    if args.get("require_full_resolution"):
        overrides["require_full_resolution"] = True
    settings = Settings(**overrides)

    uaids: List[str] = args.get("uaid", [])
    profile_id = args.get("profile")

    async with aiohttp.ClientSession() as session:
        client = UAIDClient.from_settings(settings, session)
        for uaid in uaids:
            try:
                if profile_id:
                    result = await client.resolve_profile(uaid, profile_id)
                else:
                    result = await client.resolve(uaid)
            except Exception as e:
                sentry_sdk.capture_exception(e)
                logging.exception("Exception resolving uaid %s", uaid)
                continue

            if result is None:
                print(json.dumps({"id": uaid, "result": None}))
                continue
            print(result.model_dump_json(by_alias=True, indent=2))


def main() -> None:
    logging.basicConfig()
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
