"""did:web DID resolution."""

import logging
from typing import Optional
from urllib.parse import unquote

import aiohttp
from aiohttp import ClientSession

from org.hol.uaid.did.document import did_document_from_json
from org.hol.uaid.model.resolution import DIDDocument
from org.hol.uaid.resolve.base import DIDResolver

logger = logging.getLogger(__name__)


def did_web_url(did: str) -> Optional[str]:
    """Build the did.json URL for a did:web DID.

    ``did:web:example.com`` maps to ``https://example.com/.well-known/did.json``
    and ``did:web:example.com:user:alice`` to
    ``https://example.com/user/alice/did.json``. A percent-encoded port in the
    host segment is decoded.

    Returns:
        URL string, or None if the DID has no host
    """
    parts = did.removeprefix("did:web:").split(":")
    if len(parts) == 0 or parts[0] == "":
        return None

    parts[0] = unquote(parts[0])
    if len(parts) == 1:
        parts.append(".well-known")

    return "https://{inner}/did.json".format(inner="/".join(parts))


class WebDIDResolver(DIDResolver):
    """
    Resolves did:web DIDs over HTTPS.

    Args:
        session: aiohttp session used for document retrieval
    """

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    def supports(self, did: str) -> bool:
        return did.startswith("did:web:")

    async def resolve(self, did: str) -> Optional[DIDDocument]:
        url = did_web_url(did)
        if url is None:
            return None

        async with self.session.get(url) as resp:
            if resp.status != 200:
                logger.debug("did:web document %s returned %s", url, resp.status)
                return None
            try:
                body = await resp.json(content_type=None)
            except (ValueError, aiohttp.ContentTypeError):
                logger.debug("DID document for %s is not JSON", did)
                return None
            if not isinstance(body, dict):
                return None
            return did_document_from_json(body)
