"""did:plc DID resolution."""

import logging
from typing import Optional

import aiohttp
from aiohttp import ClientSession

from org.hol.uaid.did.document import did_document_from_json
from org.hol.uaid.model.resolution import DIDDocument
from org.hol.uaid.resolve.base import DIDResolver

logger = logging.getLogger(__name__)


class PLCDIDResolver(DIDResolver):
    """
    Resolves did:plc DIDs against a PLC directory.

    Args:
        session: aiohttp session used for document retrieval
        plc_hostname: PLC directory hostname
    """

    def __init__(self, session: ClientSession, plc_hostname: str = "plc.directory") -> None:
        self.session = session
        self.plc_hostname = plc_hostname

    def supports(self, did: str) -> bool:
        return did.startswith("did:plc:")

    async def resolve(self, did: str) -> Optional[DIDDocument]:
        async with self.session.get(f"https://{self.plc_hostname}/{did}") as resp:
            if resp.status != 200:
                logger.debug("PLC directory returned %s for %s", resp.status, did)
                return None
            try:
                body = await resp.json(content_type=None)
            except (ValueError, aiohttp.ContentTypeError):
                logger.debug("DID document for %s is not JSON", did)
                return None
            if not isinstance(body, dict):
                return None
            return did_document_from_json(body)
