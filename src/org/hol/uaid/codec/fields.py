"""DNS-oriented field helpers: FQDN checks, TXT field parsing and CAIP-10 patterns."""

import re
from typing import Dict, Optional, Tuple

FQDN_LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

HEDERA_CAIP10_PATTERN = re.compile(
    r"^hedera:(mainnet|testnet|previewnet|devnet):\d+\.\d+\.\d+$"
)

EIP155_CAIP10_PATTERN = re.compile(r"^eip155:\d+:0x[0-9a-fA-F]{40}$")

HEDERA_NETWORK_PREFIXES = ("mainnet:", "testnet:", "previewnet:", "devnet:")


def normalize_domain(value: Optional[str]) -> str:
    """Trim, drop one trailing dot and lowercase a domain name."""
    if value is None:
        return ""
    return value.strip().removesuffix(".").lower()


def is_fqdn(value: Optional[str]) -> bool:
    """Check if value is a fully qualified domain name.

    The name must contain at least one dot, be at most 253 characters long and
    every label must be 1-63 characters of lowercase letters, digits and inner
    hyphens (after normalization).

    Args:
        value: Domain name to check

    Returns:
        True if value is an FQDN
    """
    normalized = normalize_domain(value)
    if normalized == "" or len(normalized) > 253 or "." not in normalized:
        return False

    for label in normalized.split("."):
        if label == "" or len(label) > 63 or not FQDN_LABEL_PATTERN.match(label):
            return False
    return True


def normalize_txt_value(value: str) -> str:
    """Trim a TXT value and unwrap one pair of surrounding double quotes."""
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed.startswith('"') and trimmed.endswith('"'):
        return trimmed[1:-1].strip()
    return trimmed


def parse_semicolon_fields(payload: str) -> Dict[str, str]:
    """Parse a ``key=value;key=value`` payload.

    Each segment is split on its first ``=``. Segments with an empty key or an
    empty value are dropped silently; later duplicates replace earlier ones.

    Args:
        payload: Semicolon delimited payload, usually a DNS TXT record

    Returns:
        Mapping of field name to normalized value
    """
    fields: Dict[str, str] = {}
    for part in payload.split(";"):
        trimmed = part.strip()
        if trimmed == "":
            continue

        key, separator, raw_value = trimmed.partition("=")
        if separator == "":
            continue

        key = key.strip()
        value = normalize_txt_value(raw_value)
        if key == "" or value == "":
            continue
        fields[key] = value
    return fields


def is_hedera_caip10(value: Optional[str]) -> bool:
    return value is not None and HEDERA_CAIP10_PATTERN.match(value.strip()) is not None


def is_eip155_caip10(value: Optional[str]) -> bool:
    return value is not None and EIP155_CAIP10_PATTERN.match(value.strip()) is not None


def parse_hedera_caip10(value: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a Hedera CAIP-10 account id into ``(network, account_id)``.

    Args:
        value: Candidate such as ``hedera:testnet:0.0.1234``

    Returns:
        Tuple of network and account id, or None if value is not Hedera CAIP-10
    """
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed.startswith("hedera:"):
        return None

    parts = trimmed.split(":")
    if len(parts) != 3:
        return None

    network = parts[1].strip()
    account_id = parts[2].strip()
    if network == "" or account_id == "" or not is_hedera_caip10(trimmed):
        return None
    return network, account_id
