"""
Unit tests for org.hol.uaid.canonical

Tests cover deterministic agent canonicalization and hashing, DID-based UAID
construction, canonical serialization order and UAID parsing.
"""

import hashlib

import pytest

from org.hol.uaid.canonical import (
    build_canonical_uaid,
    canonicalize_agent_data,
    create_uaid_aid,
    create_uaid_from_did,
    parse_uaid,
    routing_params_to_map,
)
from org.hol.uaid.codec.base58 import base58_decode, base58_encode
from org.hol.uaid.exceptions import CanonicalizationError, InvalidUAIDError
from org.hol.uaid.model.uaid import CanonicalAgentData, RoutingParams


def hedera_agent(**overrides) -> CanonicalAgentData:
    values = dict(
        registry="HOL",
        name="Support Agent",
        version="1.0.0",
        protocol="HCS-10",
        native_id="hedera:testnet:0.0.1234",
        skills=[17, 0],
    )
    values.update(overrides)
    return CanonicalAgentData(**values)


class TestCanonicalizeAgentData:
    """Test suite for canonicalize_agent_data."""

    def test_normalizes_and_renders_sorted_json(self):
        normalized, canonical = canonicalize_agent_data(hedera_agent(name="  Support Agent "))

        assert normalized.registry == "hol"
        assert normalized.protocol == "hcs-10"
        assert normalized.skills == [0, 17]
        assert canonical == (
            '{"name":"Support Agent","nativeId":"hedera:testnet:0.0.1234",'
            '"protocol":"hcs-10","registry":"hol","skills":[0,17],"version":"1.0.0"}'
        )

    def test_escapes_html_characters(self):
        _, canonical = canonicalize_agent_data(hedera_agent(name="A&B <agent>"))
        assert '"name":"A\\u0026B \\u003cagent\\u003e"' in canonical

    def test_keeps_non_ascii(self):
        _, canonical = canonicalize_agent_data(hedera_agent(name="Agente Niño"))
        assert '"name":"Agente Niño"' in canonical

    def test_empty_skills(self):
        _, canonical = canonicalize_agent_data(hedera_agent(skills=[]))
        assert '"skills":[]' in canonical

    @pytest.mark.parametrize("field", ["registry", "name", "version", "protocol", "native_id"])
    def test_required_fields(self, field):
        with pytest.raises(CanonicalizationError):
            canonicalize_agent_data(hedera_agent(**{field: "   "}))

    def test_hcs10_requires_hedera_caip10(self):
        with pytest.raises(CanonicalizationError) as exc_info:
            canonicalize_agent_data(hedera_agent(native_id="agent.example.com"))
        assert "hcs-10" in str(exc_info.value)

    def test_hcs10_rejects_bare_account_id(self):
        with pytest.raises(CanonicalizationError):
            create_uaid_aid(hedera_agent(protocol="hcs-10", native_id="0.0.1234"))

        normalized, _ = canonicalize_agent_data(
            hedera_agent(protocol="hcs-10", native_id="hedera:testnet:0.0.1234")
        )
        assert normalized.native_id == "hedera:testnet:0.0.1234"

    def test_acp_virtuals_requires_eip155(self):
        with pytest.raises(CanonicalizationError):
            canonicalize_agent_data(
                hedera_agent(protocol="acp-virtuals", native_id="hedera:testnet:0.0.1")
            )

        normalized, _ = canonicalize_agent_data(
            hedera_agent(protocol="acp-virtuals", native_id="eip155:8453:0x" + "ab" * 20)
        )
        assert normalized.protocol == "acp-virtuals"

    def test_other_protocols_accept_any_native_id(self):
        normalized, _ = canonicalize_agent_data(
            hedera_agent(protocol="a2a", native_id="agent.example.com")
        )
        assert normalized.native_id == "agent.example.com"


class TestCreateUAIDAid:
    """Test suite for create_uaid_aid."""

    def test_identifier_is_base58_sha384(self):
        _, canonical = canonicalize_agent_data(hedera_agent())
        expected_id = base58_encode(hashlib.sha384(canonical.encode("utf-8")).digest())

        uaid = create_uaid_aid(hedera_agent(), include_params=False)

        assert uaid == f"uaid:aid:{expected_id}"
        assert len(base58_decode(expected_id)) == 48

    def test_equivalent_descriptors_share_identifier(self):
        first = create_uaid_aid(hedera_agent(), include_params=False)
        second = create_uaid_aid(
            hedera_agent(registry=" hol ", protocol="hcs-10", skills=[0, 17]),
            include_params=False,
        )
        assert first == second

    def test_different_descriptors_differ(self):
        first = create_uaid_aid(hedera_agent(), include_params=False)
        second = create_uaid_aid(hedera_agent(version="1.0.1"), include_params=False)
        assert first != second

    def test_default_params(self):
        uaid = create_uaid_aid(hedera_agent())
        identifier = create_uaid_aid(hedera_agent(), include_params=False).removeprefix(
            "uaid:aid:"
        )
        assert uaid == (
            f"uaid:aid:{identifier};uid=0;registry=hol;"
            "nativeId=hedera%3Atestnet%3A0.0.1234"
        )

    def test_supplied_params_win(self):
        uaid = create_uaid_aid(
            hedera_agent(),
            RoutingParams(uid="agent-7", proto="hcs-10", domain="agent.example.com"),
        )
        parsed = parse_uaid(uaid)
        assert parsed.params == {
            "uid": "agent-7",
            "registry": "hol",
            "proto": "hcs-10",
            "nativeId": "hedera:testnet:0.0.1234",
            "domain": "agent.example.com",
        }

    def test_invalid_descriptor_raises(self):
        with pytest.raises(CanonicalizationError):
            create_uaid_aid(hedera_agent(name=""))


class TestCreateUAIDFromDid:
    """Test suite for create_uaid_from_did."""

    def test_plain_did(self):
        assert create_uaid_from_did("did:web:agent.example.com") == "uaid:did:agent.example.com"

    def test_hedera_network_prefix_removed(self):
        assert (
            create_uaid_from_did("did:hedera:testnet:z6MkAbc_0.0.1234")
            == "uaid:did:z6MkAbc_0.0.1234"
        )

    def test_suffix_stripped_and_src_added(self):
        did = "did:web:agent.example.com#key-1"
        assert create_uaid_from_did(did) == (
            "uaid:did:agent.example.com;src=z" + base58_encode(did.encode("utf-8"))
        )

    def test_supplied_src_kept(self):
        uaid = create_uaid_from_did(
            "did:web:agent.example.com?versionId=2", RoutingParams(src="zCustom")
        )
        assert uaid == "uaid:did:agent.example.com;src=zCustom"

    def test_from_uaid_aid(self):
        assert create_uaid_from_did("uaid:aid:abc123;uid=0") == (
            "uaid:did:abc123;src=z" + base58_encode(b"uaid:aid:abc123;uid=0")
        )

    def test_params_are_serialized(self):
        uaid = create_uaid_from_did(
            "did:hedera:mainnet:0.0.42", RoutingParams(proto="hcs-10", uid="0")
        )
        assert uaid == "uaid:did:0.0.42;uid=0;proto=hcs-10"

    @pytest.mark.parametrize("value", ["", "   ", "web:agent.example.com", "did:web"])
    def test_malformed_input(self, value):
        with pytest.raises(CanonicalizationError):
            create_uaid_from_did(value)


class TestBuildCanonicalUAID:
    """Test suite for build_canonical_uaid and routing_params_to_map."""

    def test_known_keys_first_then_sorted_extras(self):
        uaid = build_canonical_uaid(
            "aid",
            "abc",
            {
                "zeta": "1",
                "version": "1.0.0",
                "alpha": "a b",
                "nativeId": "agent.example.com",
                "uid": "u",
                "blank": "  ",
            },
        )
        assert uaid == (
            "uaid:aid:abc;uid=u;nativeId=agent.example.com;version=1.0.0;alpha=a%20b;zeta=1"
        )

    def test_no_params(self):
        assert build_canonical_uaid("did", "abc", {}) == "uaid:did:abc"

    def test_reserved_characters_encoded(self):
        uaid = build_canonical_uaid("aid", "abc", {"uid": "ans://v1.0.0.agent.example.com"})
        assert uaid == "uaid:aid:abc;uid=ans%3A%2F%2Fv1.0.0.agent.example.com"

    def test_routing_params_to_map(self):
        params = RoutingParams(uid=" 0 ", native_id="agent.example.com", domain="")
        assert routing_params_to_map(params) == {"uid": "0", "nativeId": "agent.example.com"}
        assert routing_params_to_map(None) == {}


class TestParseUAID:
    """Test suite for parse_uaid."""

    def test_parse_aid(self):
        parsed = parse_uaid(
            "uaid:aid:ans-godaddy-ote;uid=ans%3A%2F%2Fv1.0.0.agent.example.com;"
            "registry=ans;proto=a2a;nativeId=agent.example.com"
        )
        assert parsed.target == "aid"
        assert parsed.id == "ans-godaddy-ote"
        assert parsed.params["uid"] == "ans://v1.0.0.agent.example.com"
        assert parsed.param("registry") == "ans"
        assert parsed.param("missing") == ""

    def test_parse_did_without_params(self):
        parsed = parse_uaid("  uaid:did:0.0.1234 ")
        assert parsed.target == "did"
        assert parsed.id == "0.0.1234"
        assert parsed.params == {}

    def test_plus_decodes_to_space(self):
        assert parse_uaid("uaid:aid:abc;name=Support+Agent").params["name"] == "Support Agent"

    def test_undecodable_values_kept_raw(self):
        parsed = parse_uaid("uaid:aid:abc;a=100%;b=%zz;c=%ff")
        assert parsed.params == {"a": "100%", "b": "%zz", "c": "%ff"}

    def test_canonical_round_trip(self):
        uaid = create_uaid_aid(hedera_agent(), RoutingParams(proto="hcs-10"))
        parsed = parse_uaid(uaid)
        assert build_canonical_uaid(parsed.target, parsed.id, parsed.params) == uaid

    def test_parsed_uaid_is_frozen(self):
        parsed = parse_uaid("uaid:aid:abc")
        with pytest.raises(Exception):
            parsed.id = "other"

    @pytest.mark.parametrize(
        "value",
        ["", "did:web:agent.example.com", "uaid:", "uaid:xyz:abc", "uaid:aid:", "uaid:aid:;uid=0"],
    )
    def test_invalid(self, value):
        with pytest.raises(InvalidUAIDError):
            parse_uaid(value)
