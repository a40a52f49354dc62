"""
AID DNS/Web endpoint profile.

Reads an agent endpoint straight from ``_agent.<nativeId>`` TXT records
(``v=aid1;p=<proto>;u=<url>;k=<public key>;i=<key id>``). Trust is layered:
without verifiers the result carries ``verificationLevel=none``; an approving
metadata verifier raises it to ``metadata``; an approving cryptographic
verifier, consulted only when the record publishes a key, raises it to
``cryptographic``.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Collection, Optional
from urllib.parse import urlsplit

from org.hol.uaid.codec.fields import is_fqdn, normalize_domain, parse_semicolon_fields
from org.hol.uaid.model.resolution import (
    AID_DNS_WEB_PROFILE_ID,
    ERR_ENDPOINT_INVALID,
    ERR_INVALID_AID_RECORD,
    ERR_NO_DNS_RECORD,
    ERR_NOT_APPLICABLE,
    ERR_VERIFICATION_FAILED,
    ServiceEndpoint,
    UAIDMetadata,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.model.uaid import ParsedUAID
from org.hol.uaid.resolve.base import UAIDProfileResolver, UAIDProfileResolverContext
from org.hol.uaid.resolve.dns import DNSLookupFunc, lookup_txt

logger = logging.getLogger(__name__)

DEFAULT_AID_SCHEMES = ("https", "http", "wss", "ws")


class AIDRecordError(ValueError):
    """An ``_agent`` TXT record was rejected; ``code`` is the matching ``ERR_*`` value."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class AIDDNSRecord:
    version: str
    protocol: str
    endpoint: str
    public_key: str = ""
    key_id: str = ""

    @property
    def sort_key(self) -> str:
        return f"{self.protocol}|{self.endpoint}|{self.public_key}|{self.key_id}"


@dataclass(frozen=True)
class AIDVerificationInput:
    uaid: str
    protocol: str
    endpoint: str
    record: AIDDNSRecord


AIDVerifier = Callable[[AIDVerificationInput], Awaitable[bool]]
"""Approves or rejects a selected ``_agent`` record; exceptions propagate"""


class AIDDNSWebResolver(UAIDProfileResolver):
    """
    ``_agent`` DNS endpoint strategy.

    Args:
        dns_lookup: TXT lookup, defaults to ``lookup_txt``
        supported_schemes: Endpoint URI schemes accepted in ``u``
        metadata_verifier: Optional metadata check
        crypto_verifier: Optional public-key check, used when the record has ``k``
    """

    def __init__(
        self,
        dns_lookup: Optional[DNSLookupFunc] = None,
        supported_schemes: Optional[Collection[str]] = None,
        metadata_verifier: Optional[AIDVerifier] = None,
        crypto_verifier: Optional[AIDVerifier] = None,
    ) -> None:
        self.dns_lookup = dns_lookup or lookup_txt
        self.metadata_verifier = metadata_verifier
        self.crypto_verifier = crypto_verifier

        schemes = {scheme.strip().lower() for scheme in supported_schemes or ()}
        schemes.discard("")
        self.supported_schemes = frozenset(schemes or DEFAULT_AID_SCHEMES)

    @property
    def profile_id(self) -> str:
        return AID_DNS_WEB_PROFILE_ID

    def supports(self, uaid: str, parsed: ParsedUAID) -> bool:
        return parsed.target == "aid" and is_fqdn(parsed.params.get("nativeId"))

    def parse_record(self, raw_record: str) -> AIDDNSRecord:
        """Parse one ``_agent`` TXT record.

        Raises:
            AIDRecordError: When the record is malformed or its endpoint scheme is unsupported
        """
        fields = parse_semicolon_fields(raw_record)
        version = fields.get("v", "").strip()
        protocol = fields.get("p", "").strip() or fields.get("proto", "").strip()
        endpoint = fields.get("u", "").strip()

        if version == "" or protocol == "" or endpoint == "":
            raise AIDRecordError(ERR_INVALID_AID_RECORD, "record requires v, p and u fields")
        if not version.lower().startswith("aid"):
            raise AIDRecordError(ERR_INVALID_AID_RECORD, f"unsupported record version {version!r}")

        try:
            scheme = urlsplit(endpoint).scheme.lower()
        except ValueError as e:
            raise AIDRecordError(ERR_ENDPOINT_INVALID, f"invalid endpoint URI: {e}") from e
        if scheme not in self.supported_schemes:
            raise AIDRecordError(ERR_ENDPOINT_INVALID, f"unsupported endpoint scheme {scheme!r}")

        return AIDDNSRecord(
            version=version,
            protocol=protocol,
            endpoint=endpoint,
            public_key=fields.get("k", "").strip(),
            key_id=fields.get("i", "").strip(),
        )

    async def resolve_profile(
        self, uaid: str, context: UAIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        parsed = context.parsed_uaid
        if parsed.target != "aid":
            return self._error(
                uaid,
                ERR_NOT_APPLICABLE,
                "AID DNS/Web profile applies only to uaid:aid identifiers",
            )

        native_id = parsed.param("nativeId")
        if not is_fqdn(native_id):
            return self._error(
                uaid, ERR_NOT_APPLICABLE, "AID DNS/Web profile requires nativeId as FQDN"
            )

        dns_name = f"_agent.{normalize_domain(native_id)}"
        logger.debug("looking up %s", dns_name)
        txt_records = await self.dns_lookup(dns_name)
        if len(txt_records) == 0:
            return self._error(
                uaid, ERR_NO_DNS_RECORD, "no _agent TXT record found", {"dnsName": dns_name}
            )

        valid_records = []
        endpoint_invalid = False
        for txt_record in txt_records:
            try:
                valid_records.append(self.parse_record(txt_record))
            except AIDRecordError as e:
                logger.debug("rejected _agent record at %s (%s: %s)", dns_name, e.code, e)
                endpoint_invalid = endpoint_invalid or e.code == ERR_ENDPOINT_INVALID

        if len(valid_records) == 0:
            if endpoint_invalid:
                return self._error(
                    uaid,
                    ERR_ENDPOINT_INVALID,
                    "AID DNS record endpoint URI is invalid or unsupported",
                    {"dnsName": dns_name},
                )
            return self._error(
                uaid,
                ERR_INVALID_AID_RECORD,
                "AID DNS TXT payload is malformed or unsupported",
                {"dnsName": dns_name},
            )

        selected = min(valid_records, key=lambda record: record.sort_key)

        verification_level = "none"
        verification_method = ""
        verification_input = AIDVerificationInput(
            uaid=uaid,
            protocol=selected.protocol,
            endpoint=selected.endpoint,
            record=selected,
        )

        if self.metadata_verifier is not None:
            if not await self.metadata_verifier(verification_input):
                return self._error(
                    uaid,
                    ERR_VERIFICATION_FAILED,
                    "AID metadata verification failed",
                    {"dnsName": dns_name},
                )
            verification_level = "metadata"
            verification_method = "metadata-match"

        if selected.public_key != "" and self.crypto_verifier is not None:
            if not await self.crypto_verifier(verification_input):
                return self._error(
                    uaid,
                    ERR_VERIFICATION_FAILED,
                    "AID cryptographic verification failed",
                    {"dnsName": dns_name},
                )
            verification_level = "cryptographic"
            verification_method = "aid-pka"

        return UAIDResolutionResult(
            id=uaid,
            did=context.did,
            service=[
                ServiceEndpoint(
                    id=f"{uaid}#aid-endpoint",
                    type="AIDService",
                    service_endpoint=selected.endpoint,
                )
            ],
            metadata=UAIDMetadata(
                profile=AID_DNS_WEB_PROFILE_ID,
                resolved=True,
                verification_level=verification_level,
                verification_method=verification_method,
                precedence_source="dns",
                protocol=selected.protocol,
                endpoint=selected.endpoint,
            ),
        )

    def _error(self, uaid: str, code: str, message: str, details=None) -> UAIDResolutionResult:
        return resolution_error(uaid, AID_DNS_WEB_PROFILE_ID, code, message, details)
