"""UAID DID-resolution profile: resolves ``uaid:did`` identifiers through their base DID document."""

import logging
from typing import Mapping, Optional

from org.hol.uaid.codec.base58 import decode_multibase_b58btc
from org.hol.uaid.exceptions import InvalidMultibaseError
from org.hol.uaid.model.resolution import (
    ERR_BASE_DID_UNDETERMINED,
    ERR_DID_DOCUMENT_INVALID,
    ERR_DID_RESOLUTION_FAILED,
    ERR_INVALID_UAID,
    UAID_DID_RESOLUTION_PROFILE_ID,
    ServiceEndpoint,
    UAIDMetadata,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.model.uaid import ParsedUAID
from org.hol.uaid.resolve.base import UAIDProfileResolver, UAIDProfileResolverContext
from org.hol.uaid.resolve.registry import dedupe_strings

logger = logging.getLogger(__name__)


def decode_src_did(src: str) -> Optional[str]:
    """Decode a ``src`` back-pointer into the DID it names.

    Returns:
        The decoded DID, or None if src is not valid multibase or decodes to blank
    """
    try:
        decoded = decode_multibase_b58btc(src).decode("utf-8", errors="replace").strip()
    except InvalidMultibaseError:
        return None
    return decoded or None


def build_hinted_service(uaid: str, params: Mapping[str, str]) -> Optional[ServiceEndpoint]:
    """Describe the agent from its UAID routing parameters when the DID document has no services."""
    parts = []
    for key in ("proto", "nativeId", "domain"):
        value = params.get(key, "").strip()
        if value != "":
            parts.append(f"{key}={value}")
    if len(parts) == 0:
        return None

    return ServiceEndpoint(
        id=f"{uaid}#hcs14-hinted-service-1",
        type="HintedService",
        service_endpoint=";".join(parts),
        source="uaid-parameters",
    )


class UAIDDidResolutionResolver(UAIDProfileResolver):
    @property
    def profile_id(self) -> str:
        return UAID_DID_RESOLUTION_PROFILE_ID

    def supports(self, uaid: str, parsed: ParsedUAID) -> bool:
        return parsed.target == "did"

    def _error(self, uaid: str, code: str, message: str, details=None) -> UAIDResolutionResult:
        return resolution_error(uaid, UAID_DID_RESOLUTION_PROFILE_ID, code, message, details)

    async def resolve_profile(
        self, uaid: str, context: UAIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        parsed = context.parsed_uaid
        if parsed.target != "did":
            return self._error(
                uaid,
                ERR_INVALID_UAID,
                "identifier is not uaid:did and cannot be resolved by this profile",
            )

        base_did = context.did.strip()
        src = parsed.param("src")
        if src != "":
            base_did = decode_src_did(src) or base_did
        if base_did == "":
            return self._error(
                uaid,
                ERR_BASE_DID_UNDETERMINED,
                "unable to determine base DID; provide src parameter or resolvable method mapping",
                {"uaid": uaid},
            )

        did_document = None
        if context.did_document is not None and context.did_document.id == base_did:
            did_document = context.did_document
        elif context.resolve_did is not None:
            did_document = await context.resolve_did(base_did)

        if did_document is None:
            return self._error(
                uaid,
                ERR_DID_RESOLUTION_FAILED,
                "base DID resolution failed",
                {"uaid": uaid, "baseDid": base_did},
            )
        if did_document.id.strip() == "":
            return self._error(
                uaid,
                ERR_DID_DOCUMENT_INVALID,
                "resolved DID document is malformed",
                {"uaid": uaid, "baseDid": base_did},
            )

        services = [service.model_copy() for service in did_document.service]
        if len(services) == 0:
            hinted = build_hinted_service(uaid, parsed.params)
            if hinted is not None:
                logger.debug("no services in %s, using UAID parameter hints", base_did)
                services.append(hinted)

        return UAIDResolutionResult(
            id=uaid,
            did=base_did,
            also_known_as=dedupe_strings([base_did, *did_document.also_known_as]),
            verification_method=[m.model_copy() for m in did_document.verification_method],
            authentication=list(did_document.authentication),
            assertion_method=list(did_document.assertion_method),
            service=services,
            metadata=UAIDMetadata(
                profile=UAID_DID_RESOLUTION_PROFILE_ID,
                resolved=True,
                base_did=base_did,
                base_did_resolved=True,
                verification_method="did-resolution",
                resolution_mode="full-resolution",
            ),
        )
