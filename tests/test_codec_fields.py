"""
Unit tests for org.hol.uaid.codec.fields

Tests cover FQDN normalization and validation, semicolon TXT field parsing
and the CAIP-10 account id patterns.
"""

import pytest

from org.hol.uaid.codec.fields import (
    is_eip155_caip10,
    is_fqdn,
    is_hedera_caip10,
    normalize_domain,
    parse_hedera_caip10,
    parse_semicolon_fields,
)


class TestDomains:
    """Test suite for normalize_domain and is_fqdn."""

    def test_normalize_domain(self):
        assert normalize_domain("  Agent.Example.COM. ") == "agent.example.com"
        assert normalize_domain(None) == ""

    @pytest.mark.parametrize(
        "value",
        ["agent.example.com", "Agent.Example.COM.", "a-b.c1.io", "xn--bcher-kva.example"],
    )
    def test_valid_fqdn(self, value):
        assert is_fqdn(value) is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            None,
            "localhost",
            "-bad.example.com",
            "bad-.example.com",
            "under_score.example.com",
            "double..dot.com",
            "a" * 64 + ".example.com",
            ("a" * 60 + ".") * 5 + "com",
            "hedera:testnet:0.0.1234",
        ],
    )
    def test_invalid_fqdn(self, value):
        assert is_fqdn(value) is False


class TestParseSemicolonFields:
    """Test suite for parse_semicolon_fields."""

    def test_basic_fields(self):
        fields = parse_semicolon_fields("v=ans1; version=1.0.0 ;url=https://a.example.com")
        assert fields == {"v": "ans1", "version": "1.0.0", "url": "https://a.example.com"}

    def test_splits_on_first_equals(self):
        fields = parse_semicolon_fields("u=https://a.example.com/x?y=1")
        assert fields == {"u": "https://a.example.com/x?y=1"}

    def test_unwraps_quotes(self):
        assert parse_semicolon_fields('url="https://a.example.com"') == {
            "url": "https://a.example.com"
        }

    def test_drops_empty_and_malformed_fields(self):
        fields = parse_semicolon_fields("empty=;=value;noequals;;k=v")
        assert fields == {"k": "v"}

    def test_later_duplicates_win(self):
        assert parse_semicolon_fields("v=1;v=2") == {"v": "2"}


class TestCaip10:
    """Test suite for CAIP-10 helpers."""

    @pytest.mark.parametrize(
        "value",
        ["hedera:mainnet:0.0.1", "hedera:testnet:0.0.1234", "hedera:devnet:1.2.3"],
    )
    def test_hedera_valid(self, value):
        assert is_hedera_caip10(value) is True

    @pytest.mark.parametrize(
        "value", ["hedera:othernet:0.0.1", "hedera:testnet:0.0", "eip155:1:0x0", None]
    )
    def test_hedera_invalid(self, value):
        assert is_hedera_caip10(value) is False

    def test_eip155(self):
        assert is_eip155_caip10("eip155:8453:0x" + "a1" * 20) is True
        assert is_eip155_caip10("eip155:8453:0x1234") is False
        assert is_eip155_caip10("eip155:base:0x" + "a1" * 20) is False

    def test_parse_hedera_caip10(self):
        assert parse_hedera_caip10(" hedera:testnet:0.0.1234 ") == ("testnet", "0.0.1234")
        assert parse_hedera_caip10("hedera:testnet:abc") is None
        assert parse_hedera_caip10("eip155:1:0x" + "0" * 40) is None
