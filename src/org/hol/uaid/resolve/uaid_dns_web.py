"""
UAID DNS/Web binding profile.

Looks up ``_uaid.<nativeId>`` TXT records, reconstructs each valid record into
a canonical UAID and accepts only records whose reconstruction equals the
canonical form of the input UAID. That comparison is what keeps a DNS record
from vouching for an identifier it does not describe.

With followup resolution enabled, a confirmed binding is handed to the ANS,
AID or DID profile (by profile id) to obtain an endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from org.hol.uaid.canonical import build_canonical_uaid, parse_uaid
from org.hol.uaid.codec.fields import is_fqdn, normalize_domain, parse_semicolon_fields
from org.hol.uaid.exceptions import InvalidUAIDError
from org.hol.uaid.model.resolution import (
    AID_DNS_WEB_PROFILE_ID,
    ANS_DNS_WEB_PROFILE_ID,
    ERR_FOLLOWUP_RESOLUTION_FAILED,
    ERR_INVALID_UAID,
    ERR_INVALID_UAID_DNS_RECORD,
    ERR_NO_DNS_RECORD,
    ERR_NO_FOLLOWUP_PROFILE,
    ERR_NOT_APPLICABLE,
    ERR_UAID_MISMATCH,
    UAID_DID_RESOLUTION_PROFILE_ID,
    UAID_DNS_WEB_PROFILE_ID,
    UAIDMetadata,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.model.uaid import ParsedUAID
from org.hol.uaid.resolve.base import (
    FollowupResolverFunc,
    UAIDProfileResolver,
    UAIDProfileResolverContext,
)
from org.hol.uaid.resolve.dns import DNSLookupFunc, lookup_txt

logger = logging.getLogger(__name__)

_ProfileFollowup = Callable[[str, str], Awaitable[Optional[UAIDResolutionResult]]]


@dataclass(frozen=True)
class UAIDDNSRecord:
    """A ``_uaid`` TXT record that passed validation."""

    target: str
    identifier: str
    did: str
    reconstructed_uaid: str


def canonicalize_native_domain_params(params: Mapping[str, str]) -> Dict[str, str]:
    """Trim every value and FQDN-normalize ``nativeId`` and ``domain``."""
    output = {key: value.strip() for key, value in params.items()}
    for key in ("nativeId", "domain"):
        value = output.get(key, "")
        if is_fqdn(value):
            output[key] = normalize_domain(value)
    return output


def validate_uaid_dns_record(
    fields: Mapping[str, str], queried_native_id: str
) -> Optional[UAIDDNSRecord]:
    """Validate a parsed ``_uaid`` TXT record against the queried domain.

    Args:
        fields: Parsed semicolon fields of one TXT record
        queried_native_id: Normalized domain the record was published under

    Returns:
        UAIDDNSRecord with its canonical reconstruction, or None if invalid
    """
    target = fields.get("target", "").strip()
    identifier = fields.get("id", "").strip()
    uid = fields.get("uid", "").strip()
    proto = fields.get("proto", "").strip()
    native_id = fields.get("nativeId", "").strip()

    if target not in ("aid", "did"):
        return None
    if identifier == "" or uid == "" or proto == "" or native_id == "":
        return None
    if normalize_domain(native_id) != queried_native_id:
        return None
    if "registry" in fields and fields["registry"].strip() == "":
        return None

    did = fields.get("did", "").strip()
    if did != "" and (target != "did" or not did.startswith("did:")):
        return None

    params = {"uid": uid, "proto": proto, "nativeId": native_id}
    for key in ("registry", "domain", "src", "version"):
        value = fields.get(key, "").strip()
        if value != "":
            params[key] = value

    return UAIDDNSRecord(
        target=target,
        identifier=identifier,
        did=did,
        reconstructed_uaid=build_canonical_uaid(
            target, identifier, canonicalize_native_domain_params(params)
        ),
    )


def select_followup_profiles(parsed: ParsedUAID) -> List[str]:
    if parsed.target == "aid":
        # registry matched case-insensitively, as in the ANS profile
        if parsed.params.get("registry", "").lower() == "ans":
            return [ANS_DNS_WEB_PROFILE_ID, AID_DNS_WEB_PROFILE_ID]
        return [AID_DNS_WEB_PROFILE_ID]
    return [UAID_DID_RESOLUTION_PROFILE_ID]


class UAIDDNSWebResolver(UAIDProfileResolver):
    """
    ``_uaid`` DNS binding strategy.

    Args:
        dns_lookup: TXT lookup, defaults to ``lookup_txt``
        require_full_resolution: Fail with ``ERR_NO_FOLLOWUP_PROFILE`` instead of
            returning a binding-only result when no followup resolves
        enable_followup_resolution: Delegate confirmed bindings to ANS, AID or
            DID resolution
    """

    def __init__(
        self,
        dns_lookup: Optional[DNSLookupFunc] = None,
        require_full_resolution: bool = False,
        enable_followup_resolution: bool = False,
    ) -> None:
        self.dns_lookup = dns_lookup or lookup_txt
        self.require_full_resolution = require_full_resolution
        self.enable_followup_resolution = enable_followup_resolution

    @property
    def profile_id(self) -> str:
        return UAID_DNS_WEB_PROFILE_ID

    def supports(self, uaid: str, parsed: ParsedUAID) -> bool:
        return parsed.target in ("aid", "did") and is_fqdn(parsed.params.get("nativeId"))

    async def resolve_profile(
        self, uaid: str, context: UAIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        async def followup(profile_id: str, followup_uaid: str) -> Optional[UAIDResolutionResult]:
            if context.resolve_uaid_profile_by_id is None:
                return None
            return await context.resolve_uaid_profile_by_id(profile_id, followup_uaid)

        return await self._resolve(uaid, followup)

    async def resolve(
        self, uaid: str, followup: Optional[FollowupResolverFunc] = None
    ) -> UAIDResolutionResult:
        """Resolve outside a registry, with a plain UAID followup callable.

        Args:
            uaid: UAID to resolve
            followup: Called with the UAID for every followup profile when
                followup resolution is enabled

        Returns:
            UAIDResolutionResult
        """

        async def profile_followup(_: str, followup_uaid: str) -> Optional[UAIDResolutionResult]:
            if followup is None:
                return None
            return await followup(followup_uaid)

        return await self._resolve(uaid, profile_followup)

    def _error(self, uaid: str, code: str, message: str, details=None) -> UAIDResolutionResult:
        return resolution_error(uaid, UAID_DNS_WEB_PROFILE_ID, code, message, details)

    async def _resolve(self, uaid: str, followup: _ProfileFollowup) -> UAIDResolutionResult:
        try:
            parsed = parse_uaid(uaid)
        except InvalidUAIDError as e:
            return self._error(uaid, ERR_INVALID_UAID, str(e))

        native_id = parsed.params.get("nativeId", "")
        if not is_fqdn(native_id):
            return self._error(
                uaid, ERR_NOT_APPLICABLE, "UAID DNS profile requires nativeId as an FQDN"
            )

        normalized_native_id = normalize_domain(native_id)
        dns_name = f"_uaid.{normalized_native_id}"

        logger.debug("looking up %s", dns_name)
        txt_records = await self.dns_lookup(dns_name)
        if len(txt_records) == 0:
            return self._error(
                uaid, ERR_NO_DNS_RECORD, "no _uaid TXT record found", {"dnsName": dns_name}
            )

        input_canonical = build_canonical_uaid(
            parsed.target, parsed.id, canonicalize_native_domain_params(parsed.params)
        )

        valid_records = []
        for txt_record in txt_records:
            record = validate_uaid_dns_record(
                parse_semicolon_fields(txt_record), normalized_native_id
            )
            if record is None:
                logger.debug("rejected _uaid record at %s: %s", dns_name, txt_record)
                continue
            valid_records.append(record)

        if len(valid_records) == 0:
            return self._error(
                uaid,
                ERR_INVALID_UAID_DNS_RECORD,
                "invalid _uaid TXT payload",
                {"dnsName": dns_name},
            )

        matching_records = [
            record
            for record in valid_records
            if record.target == parsed.target
            and record.identifier == parsed.id
            and record.reconstructed_uaid == input_canonical
        ]
        if len(matching_records) == 0:
            return self._error(
                uaid,
                ERR_UAID_MISMATCH,
                "TXT fields do not match input UAID after canonical reconstruction",
                {
                    "dnsName": dns_name,
                    "inputCanonical": input_canonical,
                    "candidateCount": len(valid_records),
                },
            )

        selected = min(matching_records, key=lambda record: record.reconstructed_uaid)

        if self.enable_followup_resolution:
            failed_profiles: List[str] = []
            for profile_id in select_followup_profiles(parsed):
                followup_result = await followup(profile_id, uaid)
                if followup_result is None:
                    continue
                if followup_result.is_error:
                    failed_profiles.append(profile_id)
                    continue

                logger.debug("followup %s resolved %s", profile_id, uaid)
                return followup_result.model_copy(
                    update={
                        "did": followup_result.did or selected.did,
                        "metadata": followup_result.metadata.model_copy(
                            update={
                                "profile": UAID_DNS_WEB_PROFILE_ID,
                                "resolution_mode": "full-resolution",
                                "selected_followup_profile": profile_id,
                                "reconstructed_uaid": selected.reconstructed_uaid,
                            }
                        ),
                    }
                )

            if len(failed_profiles) > 0:
                return self._error(
                    uaid,
                    ERR_FOLLOWUP_RESOLUTION_FAILED,
                    "follow-up profile resolution failed",
                    {
                        "followupProfileId": failed_profiles[-1],
                        "attemptedFailedProfiles": failed_profiles,
                    },
                )

        if self.require_full_resolution:
            return self._error(
                uaid,
                ERR_NO_FOLLOWUP_PROFILE,
                "full resolution required but no follow-up profile is available",
            )

        return UAIDResolutionResult(
            id=uaid,
            did=selected.did,
            metadata=UAIDMetadata(
                profile=UAID_DNS_WEB_PROFILE_ID,
                resolved=True,
                verification_level="dns-binding",
                resolution_mode="dns-binding-only",
                reconstructed_uaid=selected.reconstructed_uaid,
            ),
        )
