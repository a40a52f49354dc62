"""
Unit tests for org.hol.uaid.resolve.ans_dns_web

Tests cover _ans record parsing, version gating, agent card retrieval and
validation, endpoint anchoring and protocol-based endpoint selection.
"""

import pytest
from unittest.mock import MagicMock, patch

import aiohttp

from org.hol.uaid.canonical import parse_uaid
from org.hol.uaid.model.resolution import (
    ANS_DNS_WEB_PROFILE_ID,
    ERR_AGENT_CARD_INVALID,
    ERR_ENDPOINT_NOT_ANCHORED,
    ERR_INVALID_ANS_RECORD,
    ERR_NO_DNS_RECORD,
    ERR_NOT_APPLICABLE,
    ERR_PROTOCOL_UNSPECIFIED,
    ERR_VERSION_MISMATCH,
)
from org.hol.uaid.resolve.ans_dns_web import (
    AgentCardError,
    ANSDNSWebResolver,
    EndpointCandidate,
    normalize_version,
    parse_agent_card,
    parse_ans_dns_record,
    select_preferred_endpoint,
)

UAID = (
    "uaid:aid:ans-godaddy-ote;uid=ans://v1.0.0.agent.example.com;registry=ans;"
    "proto=a2a;nativeId=agent.example.com;version=1.0.0"
)
DNS_NAME = "_ans.agent.example.com"
CARD_URL = "https://agent.example.com/.well-known/agent-card.json"
RECORD = f"v=ans1;version=v1.0.0;url={CARD_URL}"
CARD = {
    "ansName": "ans://v1.0.0.agent.example.com",
    "endpoints": {
        "mcp": {"url": "https://agent.example.com/mcp"},
        "a2a": {"url": "https://agent.example.com/a2a"},
        "mirror": {"url": "https://evil.example.net/a2a"},
    },
}


class TestHelpers:
    """Test suite for ANS parsing helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.0.0", "1.0.0"),
            ("v2.1.3", "2.1.3"),
            ("V1.0.0-beta.1+build.5", "1.0.0-beta.1+build.5"),
            ("1.0", ""),
            ("01.0.0", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize_version(self, value, expected):
        assert normalize_version(value) == expected

    def test_parse_ans_dns_record(self):
        record = parse_ans_dns_record(RECORD)
        assert record is not None
        assert record.version == "1.0.0"
        assert record.url == CARD_URL

    @pytest.mark.parametrize(
        "value",
        [
            "v=ans2;url=https://agent.example.com/card.json",
            "v=ans1",
            "v=ans1;url=http://agent.example.com/card.json",
            "v=spf1 -all",
        ],
    )
    def test_parse_ans_dns_record_rejects(self, value):
        assert parse_ans_dns_record(value) is None

    def test_parse_structured_card(self):
        card = parse_agent_card(CARD)
        assert card.ans_name == "ans://v1.0.0.agent.example.com"
        assert card.endpoints["a2a"] == "https://agent.example.com/a2a"

    def test_parse_legacy_card(self):
        card = parse_agent_card(
            {
                "url": "https://agent.example.com/",
                "additionalInterfaces": [{"url": "wss://agent.example.com/ws"}, "junk"],
            }
        )
        assert card.ans_name == ""
        assert card.endpoints == {
            "primary": "https://agent.example.com/",
            "interface-0": "wss://agent.example.com/ws",
        }

    @pytest.mark.parametrize("payload", [{}, {"endpoints": {"a": {"url": ""}}}, [], "card"])
    def test_parse_card_without_endpoints(self, payload):
        with pytest.raises(AgentCardError):
            parse_agent_card(payload)

    def test_select_preferred_endpoint(self):
        candidates = [
            EndpointCandidate("b", "https://a.example.com/A2A/rpc", "a.example.com", "/A2A/rpc"),
            EndpointCandidate("a", "https://a.example.com/mcp", "a.example.com", "/mcp"),
        ]
        assert select_preferred_endpoint(candidates, "a2a").key == "b"
        assert select_preferred_endpoint(candidates, "grpc").key == "a"
        assert select_preferred_endpoint([], "a2a") is None


class TestANSDNSWebResolver:
    """Test suite for ANSDNSWebResolver."""

    def test_supports(self):
        resolver = ANSDNSWebResolver()
        assert resolver.profile_id == ANS_DNS_WEB_PROFILE_ID
        assert resolver.supports(UAID, parse_uaid(UAID)) is True

        other = "uaid:aid:abc;registry=hol;nativeId=agent.example.com"
        assert resolver.supports(other, parse_uaid(other)) is False

        upper = "uaid:aid:abc;registry=ANS;nativeId=agent.example.com"
        assert resolver.supports(upper, parse_uaid(upper)) is True

    @pytest.mark.asyncio
    async def test_resolves_anchored_endpoint(self, txt_lookup, http_session):
        """Test the card endpoint whose path names the protocol is selected."""
        session = http_session(200, CARD)
        lookup = txt_lookup({DNS_NAME: [RECORD]})

        result = await ANSDNSWebResolver(lookup, session).resolve(UAID)

        assert result.error is None
        assert result.metadata.resolved is True
        assert result.metadata.profile == ANS_DNS_WEB_PROFILE_ID
        assert result.metadata.verification_level == "metadata"
        assert result.metadata.verification_method == "metadata-match"
        assert result.metadata.precedence_source == "dns"
        assert result.metadata.protocol == "a2a"
        assert result.metadata.endpoint == "https://agent.example.com/a2a"
        assert result.metadata.agent_card_url == CARD_URL
        assert len(result.service) == 1
        assert result.service[0].id == f"{UAID}#ans-endpoint"
        assert result.service[0].type == "ANSService"

        session.get.assert_called_once_with(CARD_URL, headers={"Accept": "application/json"})

    @pytest.mark.asyncio
    async def test_legacy_card_with_versioned_uid(self, txt_lookup, http_session):
        session = http_session(
            200,
            {
                "url": "https://agent.example.com/",
                "additionalInterfaces": [{"url": "https://agent.example.com/a2a"}],
            },
        )
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)
        assert result.metadata.endpoint == "https://agent.example.com/a2a"

    @pytest.mark.asyncio
    async def test_legacy_card_uid_mismatch(self, txt_lookup, http_session):
        uaid = UAID.replace("uid=ans://v1.0.0.agent.example.com", "uid=agent-7")
        session = http_session(200, {"url": "https://agent.example.com/a2a"})

        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(uaid)

        assert result.error.code == ERR_AGENT_CARD_INVALID
        assert result.error.details["expectedUid"] == "ans://v1.0.0.agent.example.com"

    @pytest.mark.asyncio
    async def test_ans_name_mismatch(self, txt_lookup, http_session):
        session = http_session(200, dict(CARD, ansName="ans://v9.9.9.other.example.com"))
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)
        assert result.error.code == ERR_AGENT_CARD_INVALID
        assert result.error.details["actualAnsName"] == "ans://v9.9.9.other.example.com"

    @pytest.mark.asyncio
    async def test_endpoint_not_anchored(self, txt_lookup, http_session):
        session = http_session(
            200,
            {
                "ansName": "ans://v1.0.0.agent.example.com",
                "endpoints": {
                    "a2a": {"url": "https://evil.example.net/a2a"},
                    "plain": {"url": "http://agent.example.com/a2a"},
                },
            },
        )
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)
        assert result.error.code == ERR_ENDPOINT_NOT_ANCHORED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "replacement,code",
        [
            ("uid=0", ERR_NOT_APPLICABLE),
            ("uid=", ERR_NOT_APPLICABLE),
        ],
    )
    async def test_uid_required(self, txt_lookup, replacement, code):
        uaid = UAID.replace("uid=ans://v1.0.0.agent.example.com", replacement)
        lookup = txt_lookup({DNS_NAME: [RECORD]})
        result = await ANSDNSWebResolver(lookup).resolve(uaid)
        assert result.error.code == code
        assert lookup.queries == []

    @pytest.mark.asyncio
    async def test_protocol_required(self, txt_lookup):
        result = await ANSDNSWebResolver(txt_lookup({})).resolve(UAID.replace("proto=a2a", "proto=0"))
        assert result.error.code == ERR_PROTOCOL_UNSPECIFIED

    @pytest.mark.asyncio
    async def test_invalid_uaid_version(self, txt_lookup):
        result = await ANSDNSWebResolver(txt_lookup({})).resolve(
            UAID.replace("version=1.0.0", "version=latest")
        )
        assert result.error.code == ERR_NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_no_dns_record(self, txt_lookup):
        result = await ANSDNSWebResolver(txt_lookup({})).resolve(UAID)
        assert result.error.code == ERR_NO_DNS_RECORD
        assert result.error.details == {"dnsName": DNS_NAME}

    @pytest.mark.asyncio
    async def test_invalid_ans_record(self, txt_lookup):
        result = await ANSDNSWebResolver(
            txt_lookup({DNS_NAME: ["v=ans1;url=http://agent.example.com/card.json"]})
        ).resolve(UAID)
        assert result.error.code == ERR_INVALID_ANS_RECORD

    @pytest.mark.asyncio
    async def test_record_without_version(self, txt_lookup):
        result = await ANSDNSWebResolver(
            txt_lookup({DNS_NAME: [f"v=ans1;url={CARD_URL}"]})
        ).resolve(UAID)
        assert result.error.code == ERR_VERSION_MISMATCH

    @pytest.mark.asyncio
    async def test_record_with_other_version(self, txt_lookup):
        result = await ANSDNSWebResolver(
            txt_lookup({DNS_NAME: [f"v=ans1;version=2.0.0;url={CARD_URL}"]})
        ).resolve(UAID)
        assert result.error.code == ERR_VERSION_MISMATCH
        assert result.error.details["uaidVersion"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_picks_matching_version_among_records(self, txt_lookup, http_session):
        session = http_session(200, CARD)
        lookup = txt_lookup(
            {
                DNS_NAME: [
                    "v=ans1;version=2.0.0;url=https://agent.example.com/a.json",
                    RECORD,
                ]
            }
        )
        result = await ANSDNSWebResolver(lookup, session).resolve(UAID)
        assert result.metadata.agent_card_url == CARD_URL

    @pytest.mark.asyncio
    async def test_card_http_error(self, txt_lookup, http_session):
        session = http_session(404, {"error": "not found"})
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)

        assert result.error.code == ERR_AGENT_CARD_INVALID
        assert result.error.details["stage"] == "fetch"
        assert result.error.details["agentCardUrl"] == CARD_URL

    @pytest.mark.asyncio
    async def test_card_invalid_json(self, txt_lookup, http_session):
        session = http_session(200, b"<html>")
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)
        assert result.error.details["stage"] == "fetch"

    @pytest.mark.asyncio
    async def test_card_missing_endpoints(self, txt_lookup, http_session):
        session = http_session(200, {"ansName": "ans://v1.0.0.agent.example.com"})
        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)
        assert result.error.code == ERR_AGENT_CARD_INVALID
        assert result.error.details["stage"] == "validate"

    @pytest.mark.asyncio
    @patch("org.hol.uaid.resolve.ans_dns_web.sentry_sdk")
    async def test_card_transport_error_reported(self, mock_sentry, txt_lookup):
        session = MagicMock()
        session.get.return_value.__aenter__.side_effect = aiohttp.ClientConnectionError(
            "connection refused"
        )

        result = await ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), session).resolve(UAID)

        assert result.error.code == ERR_AGENT_CARD_INVALID
        assert result.error.details["stage"] == "fetch"
        mock_sentry.capture_exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_resolve_profile_delegates(self, txt_lookup, http_session, profile_context):
        resolver = ANSDNSWebResolver(txt_lookup({DNS_NAME: [RECORD]}), http_session(200, CARD))
        result = await resolver.resolve_profile(UAID, profile_context(UAID))
        assert result.metadata.endpoint == "https://agent.example.com/a2a"
