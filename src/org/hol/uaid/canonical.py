"""UAID canonicalization.

Builds ``uaid:aid`` identifiers from agent descriptors (SHA-384 over canonical
JSON, base58 encoded), ``uaid:did`` identifiers from existing DIDs, and the
deterministic ``uaid:<target>:<id>;k=v;...`` serialization used both for
minting and for comparing DNS-published bindings against an input UAID.
"""

import hashlib
import json
import re
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import quote, unquote_plus

from org.hol.uaid.codec.base58 import base58_encode
from org.hol.uaid.codec.fields import (
    HEDERA_NETWORK_PREFIXES,
    is_eip155_caip10,
    is_hedera_caip10,
    parse_semicolon_fields,
)
from org.hol.uaid.exceptions import CanonicalizationError, InvalidUAIDError
from org.hol.uaid.model.uaid import CanonicalAgentData, ParsedUAID, RoutingParams

UAID_PARAM_ORDER = (
    "uid",
    "registry",
    "proto",
    "nativeId",
    "domain",
    "src",
    "version",
)
"""Fixed order of well-known parameters in a canonical UAID"""

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# json.dumps leaves these unescaped; the canonical form escapes them
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _canonical_json(value: Mapping[str, object]) -> str:
    encoded = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for character, escape in _JSON_ESCAPES.items():
        encoded = encoded.replace(character, escape)
    return encoded


def canonicalize_agent_data(data: CanonicalAgentData) -> Tuple[CanonicalAgentData, str]:
    """Normalize agent data and render it as canonical JSON.

    Registry and protocol are lowercased, every string is trimmed and skills
    are sorted ascending. Protocols carrying an on-chain identity must use the
    matching CAIP-10 form for ``native_id``.

    Args:
        data: Agent descriptor supplied by the caller

    Returns:
        Tuple of normalized descriptor and its canonical JSON

    Raises:
        CanonicalizationError: If a required field is missing or a CAIP-10
            constraint is violated
    """
    normalized = CanonicalAgentData(
        registry=data.registry.strip().lower(),
        name=data.name.strip(),
        version=data.version.strip(),
        protocol=data.protocol.strip().lower(),
        native_id=data.native_id.strip(),
        skills=sorted(data.skills),
    )

    for field, label in (
        ("registry", "registry"),
        ("name", "name"),
        ("version", "version"),
        ("protocol", "protocol"),
        ("native_id", "nativeId"),
    ):
        if getattr(normalized, field) == "":
            raise CanonicalizationError(f"{label} is required")

    if normalized.protocol == "hcs-10" and not is_hedera_caip10(normalized.native_id):
        raise CanonicalizationError("for protocol hcs-10, nativeId must be Hedera CAIP-10")
    if normalized.protocol == "acp-virtuals" and not is_eip155_caip10(normalized.native_id):
        raise CanonicalizationError(
            "for protocol acp-virtuals, nativeId must be EIP-155 CAIP-10"
        )

    canonical = _canonical_json(
        {
            # empty skills hash as [] while resolvers emitting null for an unset list disagree
            "skills": normalized.skills,
            "name": normalized.name,
            "nativeId": normalized.native_id,
            "protocol": normalized.protocol,
            "registry": normalized.registry,
            "version": normalized.version,
        }
    )
    return normalized, canonical


def routing_params_to_map(params: Optional[RoutingParams]) -> Dict[str, str]:
    """Convert routing params into a wire-keyed map, dropping blank values."""
    output: Dict[str, str] = {}
    if params is None:
        return output

    for key, value in params.model_dump(by_alias=True).items():
        if value is not None and value.strip() != "":
            output[key] = value.strip()
    return output


def create_uaid_aid(
    data: CanonicalAgentData,
    params: Optional[RoutingParams] = None,
    include_params: bool = True,
) -> str:
    """Mint a ``uaid:aid`` identifier for an agent.

    The identifier is the base58 encoding of the SHA-384 digest of the
    canonical agent JSON, so equivalent descriptors (differing only in case,
    whitespace or skill order) always produce the same identifier.

    Args:
        data: Agent descriptor
        params: Routing parameters appended after the identifier
        include_params: When False only ``uaid:aid:<id>`` is returned

    Returns:
        Canonical UAID string

    Raises:
        CanonicalizationError: If the descriptor is invalid
    """
    normalized, canonical = canonicalize_agent_data(data)
    identifier = base58_encode(hashlib.sha384(canonical.encode("utf-8")).digest())

    if not include_params:
        return f"uaid:aid:{identifier}"

    param_map = routing_params_to_map(params)
    param_map.setdefault("registry", normalized.registry)
    param_map.setdefault("nativeId", normalized.native_id)
    param_map.setdefault("uid", "0")

    return build_canonical_uaid("aid", identifier, param_map)


def _sanitize_did_specific_id(id_part: str) -> Tuple[str, bool]:
    match = re.search(r"[;?#]", id_part)
    if match is None:
        return id_part, False
    return id_part[: match.start()], True


def create_uaid_from_did(existing_did: str, params: Optional[RoutingParams] = None) -> str:
    """Build a ``uaid:did`` identifier from an existing DID or ``uaid:aid``.

    Service, query and fragment suffixes (``;``, ``?``, ``#``) are stripped
    from the method-specific id; when that happens the original DID is kept
    as a ``src`` back-pointer (``z`` + base58) unless the caller supplied one.
    For ``did:hedera`` the redundant network prefix is removed.

    Args:
        existing_did: ``did:<method>:<id>`` or ``uaid:aid:<id>``
        params: Routing parameters appended after the identifier

    Returns:
        Canonical UAID string

    Raises:
        CanonicalizationError: If the DID is empty or malformed
    """
    trimmed = existing_did.strip()
    if trimmed == "":
        raise CanonicalizationError("existing DID is required")

    if trimmed.startswith("uaid:aid:"):
        method = "aid"
        id_part = trimmed.removeprefix("uaid:aid:")
    elif trimmed.startswith("did:"):
        parts = trimmed.split(":", 2)
        if len(parts) != 3:
            raise CanonicalizationError("invalid DID format")
        method = parts[1]
        id_part = parts[2]
    else:
        raise CanonicalizationError("invalid DID format")

    final_id, had_suffix = _sanitize_did_specific_id(id_part)

    if method == "hedera":
        for network_prefix in HEDERA_NETWORK_PREFIXES:
            if final_id.startswith(network_prefix):
                final_id = final_id.removeprefix(network_prefix)
                break

    param_map = routing_params_to_map(params)
    if had_suffix and "src" not in param_map:
        param_map["src"] = "z" + base58_encode(trimmed.encode("utf-8"))

    return build_canonical_uaid("did", final_id, param_map)


def _encode_param_value(value: str) -> str:
    # quote() already renders spaces as %20
    return quote(value, safe="")


def build_canonical_uaid(target: str, identifier: str, params: Mapping[str, str]) -> str:
    """Serialize a UAID deterministically.

    Well-known parameters come first in ``UAID_PARAM_ORDER``, followed by any
    other parameters sorted by key. Blank values are skipped and values are
    percent-encoded.

    Args:
        target: ``aid`` or ``did``
        identifier: Method-specific identifier
        params: Parameter map

    Returns:
        ``uaid:<target>:<identifier>`` optionally followed by ``;k=v`` pairs
    """
    entries = []
    used_keys = set()

    for key in UAID_PARAM_ORDER:
        value = (params.get(key) or "").strip()
        if value == "":
            continue
        entries.append(f"{key}={_encode_param_value(value)}")
        used_keys.add(key)

    extra_keys = sorted(
        key
        for key, value in params.items()
        if key not in used_keys and (value or "").strip() != ""
    )
    for key in extra_keys:
        entries.append(f"{key}={_encode_param_value(params[key].strip())}")

    if len(entries) == 0:
        return f"uaid:{target}:{identifier}"
    return f"uaid:{target}:{identifier};" + ";".join(entries)


def _decode_param_value(value: str) -> str:
    if _MALFORMED_ESCAPE.search(value):
        return value
    try:
        return unquote_plus(value, errors="strict")
    except UnicodeDecodeError:
        return value


def parse_uaid(value: str) -> ParsedUAID:
    """Parse a UAID string.

    Args:
        value: ``uaid:aid:<id>[;params]`` or ``uaid:did:<id>[;params]``

    Returns:
        ParsedUAID with percent-decoded parameters

    Raises:
        InvalidUAIDError: If the prefix, target or identifier is missing
    """
    trimmed = value.strip()
    if not trimmed.startswith("uaid:"):
        raise InvalidUAIDError("invalid UAID")

    remainder = trimmed.removeprefix("uaid:")
    if remainder.startswith("aid:"):
        target = "aid"
    elif remainder.startswith("did:"):
        target = "did"
    else:
        raise InvalidUAIDError("invalid UAID target")
    remainder = remainder[len(target) + 1 :]

    identifier, _, param_section = remainder.partition(";")
    if identifier.strip() == "":
        raise InvalidUAIDError("UAID identifier is required")

    params = {
        key: _decode_param_value(raw)
        for key, raw in parse_semicolon_fields(param_section).items()
    }
    return ParsedUAID(target=target, id=identifier, params=params)
