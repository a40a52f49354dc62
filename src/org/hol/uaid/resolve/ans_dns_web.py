"""
ANS DNS/Web agent-card profile.

Resolves ``uaid:aid`` identifiers registered with the Agent Name Service:
``_ans.<nativeId>`` TXT records point at an HTTPS agent card, and the card
lists the agent's endpoints. Only endpoints hosted on ``nativeId`` itself are
eligible, so a card cannot redirect callers to an unrelated host.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Optional
from urllib.parse import urlsplit

import aiohttp
import sentry_sdk
from aiohttp import ClientSession, ClientTimeout

from org.hol.uaid.canonical import parse_uaid
from org.hol.uaid.codec.fields import is_fqdn, normalize_domain, parse_semicolon_fields
from org.hol.uaid.exceptions import InvalidUAIDError
from org.hol.uaid.model.resolution import (
    ANS_DNS_WEB_PROFILE_ID,
    ERR_AGENT_CARD_INVALID,
    ERR_ENDPOINT_NOT_ANCHORED,
    ERR_ENDPOINT_NOT_FOUND,
    ERR_INVALID_ANS_RECORD,
    ERR_INVALID_UAID,
    ERR_NO_DNS_RECORD,
    ERR_NOT_APPLICABLE,
    ERR_PROTOCOL_UNSPECIFIED,
    ERR_VERSION_MISMATCH,
    ServiceEndpoint,
    UAIDMetadata,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.model.uaid import ParsedUAID
from org.hol.uaid.resolve.base import UAIDProfileResolver, UAIDProfileResolverContext
from org.hol.uaid.resolve.dns import DNSLookupFunc, lookup_txt

logger = logging.getLogger(__name__)

DEFAULT_ANS_SCHEMES = ("https", "wss")

SEMVER_PATTERN = re.compile(
    r"^(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


class AgentCardError(Exception):
    """Agent card could not be fetched or decoded."""


@dataclass(frozen=True)
class ANSDNSRecord:
    version: str
    url: str


@dataclass(frozen=True)
class EndpointCandidate:
    key: str
    endpoint: str
    hostname: str
    path: str


@dataclass(frozen=True)
class AgentCard:
    ans_name: str
    endpoints: Dict[str, str]


def normalize_version(value: Optional[str]) -> str:
    """Strip an optional ``v`` prefix and validate semver.

    Returns:
        The bare version, or the empty string if value is blank or not semver
    """
    trimmed = (value or "").strip()
    if trimmed == "":
        return ""
    if trimmed[0] in ("v", "V"):
        trimmed = trimmed[1:]
    if not SEMVER_PATTERN.match(trimmed):
        return ""
    return trimmed


def parse_ans_dns_record(record: str) -> Optional[ANSDNSRecord]:
    """Parse a ``v=ans1;version=...;url=https://...`` TXT record."""
    fields = parse_semicolon_fields(record)
    if fields.get("v", "").strip().lower() != "ans1":
        return None

    url = fields.get("url", "").strip()
    if url == "":
        return None
    try:
        parsed = urlsplit(url)
    except ValueError:
        return None
    if parsed.scheme.lower() != "https":
        return None

    return ANSDNSRecord(version=normalize_version(fields.get("version")), url=url)


def _as_string(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def parse_agent_card(payload: Any) -> AgentCard:
    """Extract ``ansName`` and endpoints from an agent card.

    Both card shapes are accepted: a structured ``endpoints`` map of
    ``{"<key>": {"url": ...}}`` and the flat ``url`` plus
    ``additionalInterfaces`` layout.

    Raises:
        AgentCardError: If the card declares no endpoints
    """
    if not isinstance(payload, dict):
        raise AgentCardError("agent card is not a JSON object")

    endpoints: Dict[str, str] = {}

    raw_endpoints = payload.get("endpoints")
    if isinstance(raw_endpoints, dict):
        for key, value in raw_endpoints.items():
            if isinstance(value, dict):
                endpoint = _as_string(value.get("url"))
                if endpoint != "":
                    endpoints[key] = endpoint

    fallback_url = _as_string(payload.get("url"))
    if fallback_url != "":
        endpoints["primary"] = fallback_url

    interfaces = payload.get("additionalInterfaces")
    if isinstance(interfaces, list):
        for index, item in enumerate(interfaces):
            if not isinstance(item, dict):
                continue
            interface_url = _as_string(item.get("url"))
            if interface_url != "":
                endpoints[f"interface-{index}"] = interface_url

    if len(endpoints) == 0:
        raise AgentCardError("missing endpoints")

    return AgentCard(ans_name=_as_string(payload.get("ansName")), endpoints=endpoints)


def has_path_segment(path: str, protocol: str) -> bool:
    normalized_protocol = protocol.strip().lower()
    if normalized_protocol == "":
        return False
    return any(segment.strip().lower() == normalized_protocol for segment in path.split("/"))


def select_preferred_endpoint(
    candidates: List[EndpointCandidate], protocol: str
) -> Optional[EndpointCandidate]:
    """Pick the first candidate (by key) whose path names the protocol, else the first one."""
    if len(candidates) == 0:
        return None

    ordered = sorted(candidates, key=lambda candidate: candidate.key)
    for candidate in ordered:
        if has_path_segment(candidate.path, protocol):
            return candidate
    return ordered[0]


class ANSDNSWebResolver(UAIDProfileResolver):
    """
    ANS agent-card strategy.

    Args:
        dns_lookup: TXT lookup, defaults to ``lookup_txt``
        session: Shared aiohttp session; a short-lived one is opened per
            fetch when omitted
        supported_schemes: Endpoint URI schemes eligible for selection
        timeout: Total timeout in seconds for agent card retrieval
    """

    def __init__(
        self,
        dns_lookup: Optional[DNSLookupFunc] = None,
        session: Optional[ClientSession] = None,
        supported_schemes: Optional[Collection[str]] = None,
        timeout: float = 30.0,
    ) -> None:
        self.dns_lookup = dns_lookup or lookup_txt
        self.session = session
        self.timeout = timeout

        schemes = {scheme.strip().lower() for scheme in supported_schemes or ()}
        schemes.discard("")
        self.supported_schemes = frozenset(schemes or DEFAULT_ANS_SCHEMES)

    @property
    def profile_id(self) -> str:
        return ANS_DNS_WEB_PROFILE_ID

    def supports(self, uaid: str, parsed: ParsedUAID) -> bool:
        if parsed.target != "aid":
            return False
        # registry matched case-insensitively; exact-match resolvers skip ANS for registry=ANS
        if parsed.param("registry").lower() != "ans":
            return False
        return is_fqdn(parsed.params.get("nativeId"))

    async def resolve_profile(
        self, uaid: str, context: UAIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        return await self.resolve(uaid)

    def _error(self, uaid: str, code: str, message: str, details=None) -> UAIDResolutionResult:
        return resolution_error(uaid, ANS_DNS_WEB_PROFILE_ID, code, message, details)

    async def fetch_json(self, url: str) -> Any:
        """GET a JSON document.

        Raises:
            AgentCardError: On transport failure, non-2xx status or invalid JSON
        """
        if self.session is not None:
            return await self._fetch_json(self.session, url)
        async with ClientSession(timeout=ClientTimeout(total=self.timeout)) as session:
            return await self._fetch_json(session, url)

    async def _fetch_json(self, session: ClientSession, url: str) -> Any:
        try:
            async with session.get(url, headers={"Accept": "application/json"}) as resp:
                body = await resp.read()
                if resp.status < 200 or resp.status >= 300:
                    raise AgentCardError(f"request failed with status {resp.status}")
        except (aiohttp.ClientError, TimeoutError) as e:
            sentry_sdk.capture_exception(e)
            raise AgentCardError(str(e) or type(e).__name__) from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise AgentCardError(f"invalid JSON: {e}") from e

    def extract_endpoint_candidates(self, endpoints: Dict[str, str]) -> List[EndpointCandidate]:
        candidates = []
        for key, endpoint in endpoints.items():
            try:
                parsed = urlsplit(endpoint)
                hostname = parsed.hostname or ""
            except ValueError:
                continue
            if parsed.scheme.lower() not in self.supported_schemes:
                continue
            candidates.append(
                EndpointCandidate(key=key, endpoint=endpoint, hostname=hostname, path=parsed.path)
            )
        return candidates

    async def resolve(self, uaid: str) -> UAIDResolutionResult:
        """Resolve a UAID through its ANS agent card."""
        try:
            parsed = parse_uaid(uaid)
        except InvalidUAIDError as e:
            return self._error(uaid, ERR_INVALID_UAID, str(e))

        if parsed.target != "aid":
            return self._error(
                uaid, ERR_NOT_APPLICABLE, "ANS profile applies only to uaid:aid identifiers"
            )
        # registry matched case-insensitively; exact-match resolvers skip ANS for registry=ANS
        if parsed.param("registry").lower() != "ans":
            return self._error(uaid, ERR_NOT_APPLICABLE, "ANS profile requires registry=ans")

        native_id = parsed.param("nativeId")
        if not is_fqdn(native_id):
            return self._error(uaid, ERR_NOT_APPLICABLE, "ANS profile requires nativeId as FQDN")

        uid = parsed.param("uid")
        if uid in ("", "0"):
            return self._error(
                uaid, ERR_NOT_APPLICABLE, "ANS profile requires non-zero uid parameter"
            )

        protocol = parsed.param("proto")
        if protocol in ("", "0"):
            return self._error(
                uaid, ERR_PROTOCOL_UNSPECIFIED, "ANS profile requires usable proto parameter"
            )

        uaid_version = normalize_version(parsed.params.get("version"))
        if parsed.param("version") != "" and uaid_version == "":
            return self._error(uaid, ERR_NOT_APPLICABLE, "invalid version parameter in UAID")

        normalized_native_id = normalize_domain(native_id)
        dns_name = f"_ans.{normalized_native_id}"

        logger.debug("looking up %s", dns_name)
        txt_records = await self.dns_lookup(dns_name)
        if len(txt_records) == 0:
            return self._error(
                uaid, ERR_NO_DNS_RECORD, "no _ans TXT record found", {"dnsName": dns_name}
            )

        valid_records = [
            record
            for record in (parse_ans_dns_record(txt_record) for txt_record in txt_records)
            if record is not None
        ]
        if len(valid_records) == 0:
            return self._error(
                uaid, ERR_INVALID_ANS_RECORD, "invalid _ans TXT payload", {"dnsName": dns_name}
            )

        matching_records = valid_records
        if uaid_version != "":
            versioned_records = [record for record in valid_records if record.version != ""]
            if len(versioned_records) == 0:
                return self._error(
                    uaid,
                    ERR_VERSION_MISMATCH,
                    "UAID specifies version but DNS record has no version fields",
                    {"dnsName": dns_name, "uaidVersion": uaid_version},
                )
            matching_records = [
                record for record in versioned_records if record.version == uaid_version
            ]
            if len(matching_records) == 0:
                return self._error(
                    uaid,
                    ERR_VERSION_MISMATCH,
                    "UAID version does not match ANS DNS TXT record",
                    {"dnsName": dns_name, "uaidVersion": uaid_version},
                )

        selected_record = min(matching_records, key=lambda record: record.url)

        try:
            payload = await self.fetch_json(selected_record.url)
        except AgentCardError as e:
            return self._error(
                uaid,
                ERR_AGENT_CARD_INVALID,
                "agent card retrieval failed",
                {"stage": "fetch", "agentCardUrl": selected_record.url, "reason": str(e)},
            )

        try:
            card = parse_agent_card(payload)
        except AgentCardError as e:
            return self._error(
                uaid,
                ERR_AGENT_CARD_INVALID,
                "agent card is missing required fields",
                {"stage": "validate", "agentCardUrl": selected_record.url, "reason": str(e)},
            )

        if card.ans_name != "":
            if card.ans_name != uid:
                return self._error(
                    uaid,
                    ERR_AGENT_CARD_INVALID,
                    "agent card ansName does not match UAID uid",
                    {"expectedUid": uid, "actualAnsName": card.ans_name},
                )
        elif selected_record.version != "":
            expected_uid = f"ans://v{selected_record.version}.{normalized_native_id}"
            if uid != expected_uid:
                return self._error(
                    uaid,
                    ERR_AGENT_CARD_INVALID,
                    "UID does not match versioned ANS format from DNS record",
                    {"expectedUid": expected_uid, "actualUid": uid},
                )

        anchored = [
            candidate
            for candidate in self.extract_endpoint_candidates(card.endpoints)
            if normalize_domain(candidate.hostname) == normalized_native_id
        ]
        if len(anchored) == 0:
            return self._error(
                uaid,
                ERR_ENDPOINT_NOT_ANCHORED,
                "no endpoint URL is anchored to nativeId host",
                {"nativeId": normalized_native_id},
            )

        selected = select_preferred_endpoint(anchored, protocol)
        if selected is None:
            return self._error(uaid, ERR_ENDPOINT_NOT_FOUND, "no usable endpoint found")

        return UAIDResolutionResult(
            id=uaid,
            service=[
                ServiceEndpoint(
                    id=f"{uaid}#ans-endpoint",
                    type="ANSService",
                    service_endpoint=selected.endpoint,
                )
            ],
            metadata=UAIDMetadata(
                profile=ANS_DNS_WEB_PROFILE_ID,
                resolved=True,
                verification_level="metadata",
                verification_method="metadata-match",
                precedence_source="dns",
                protocol=protocol,
                endpoint=selected.endpoint,
                agent_card_url=selected_record.url,
            ),
        )
