"""Default DNS TXT lookup used by the DNS-backed resolution strategies."""

import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from aiodns import DNSResolver
from aiodns.error import ARES_ENODATA, ARES_ENOTFOUND, DNSError

logger = logging.getLogger(__name__)

DNSLookupFunc = Callable[[str], Awaitable[List[str]]]
"""Async callable returning the TXT payloads published at a hostname"""

NOT_FOUND_ERRORS = frozenset((ARES_ENODATA, ARES_ENOTFOUND))


def _record_text(record) -> str:
    text = record.text
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return text


async def lookup_txt(
    hostname: str, resolver: Optional[DNSResolver] = None
) -> List[str]:
    """Resolve TXT records for a hostname.

    NXDOMAIN and empty answers resolve to an empty list so callers can treat
    "nothing published" as a protocol outcome; every other DNS failure is
    raised.

    Args:
        hostname: Fully qualified name to query, e.g. ``_uaid.agent.example.com``
        resolver: Resolver to use, a default ``DNSResolver`` when omitted

    Returns:
        TXT payloads in answer order

    Raises:
        DNSError: On resolution failures other than not-found
    """
    if resolver is None:
        resolver = DNSResolver()
    try:
        results = await resolver.query(hostname, "TXT")
    except DNSError as e:
        if len(e.args) > 0 and e.args[0] in NOT_FOUND_ERRORS:
            logger.debug("no TXT records at %s", hostname)
            return []
        raise
    return [_record_text(result) for result in results or []]


def create_txt_lookup(
    nameservers: Optional[Sequence[str]] = None, timeout: Optional[float] = None
) -> DNSLookupFunc:
    """Build a TXT lookup bound to specific nameservers and timeout.

    A fresh ``DNSResolver`` is created per lookup so the callable can be shared
    across event loops.
    """

    async def lookup(hostname: str) -> List[str]:
        resolver = DNSResolver(
            nameservers=list(nameservers) if nameservers else None, timeout=timeout
        )
        return await lookup_txt(hostname, resolver)

    return lookup
