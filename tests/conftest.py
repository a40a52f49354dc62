"""
Shared test configuration and fixtures for UAID resolution tests.

Provides static DNS TXT lookups and mocked aiohttp sessions so every
resolution profile can be exercised without network access.
"""

import json
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from org.hol.uaid.canonical import parse_uaid
from org.hol.uaid.resolve.base import UAIDProfileResolverContext


class StaticTXTLookup:
    """TXT lookup answering from a fixed mapping and recording queried names."""

    def __init__(self, records: Dict[str, List[str]]):
        self.records = records
        self.queries: List[str] = []

    async def __call__(self, hostname: str) -> List[str]:
        self.queries.append(hostname)
        return list(self.records.get(hostname, []))


@pytest.fixture
def txt_lookup():
    """Factory fixture building a ``StaticTXTLookup`` from a name to records mapping."""

    def _build(records: Dict[str, List[str]]) -> StaticTXTLookup:
        return StaticTXTLookup(records)

    return _build


def build_response(status: int = 200, body=None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    if body is None:
        raw = b""
    elif isinstance(body, bytes):
        raw = body
    else:
        raw = json.dumps(body).encode("utf-8")
    mock_response.read.return_value = raw
    mock_response.json.return_value = body
    return mock_response


@pytest.fixture
def http_session():
    """Factory fixture returning a mocked ``ClientSession`` whose GETs answer with one response."""

    def _build(status: int = 200, body=None) -> MagicMock:
        mock_session = MagicMock()
        mock_session.get.return_value.__aenter__.return_value = build_response(status, body)
        return mock_session

    return _build


@pytest.fixture
def profile_context():
    """Factory fixture building a resolver context for a UAID string."""

    def _build(uaid: str, **kwargs) -> UAIDProfileResolverContext:
        return UAIDProfileResolverContext(parsed_uaid=parse_uaid(uaid), **kwargs)

    return _build
