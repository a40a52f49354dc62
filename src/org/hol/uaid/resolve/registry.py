"""
Resolver registry.

Dispatches a UAID across the registered strategies, derives a DID-document
backed fallback profile, and merges the first successful strategy result
over that fallback.

The resolver lists are populated once, before concurrent use. Resolution
itself keeps no state between calls.
"""

import logging
from typing import Iterable, List, Optional

from org.hol.uaid.canonical import parse_uaid
from org.hol.uaid.codec.base58 import decode_multibase_b58btc
from org.hol.uaid.codec.fields import HEDERA_NETWORK_PREFIXES, parse_hedera_caip10
from org.hol.uaid.exceptions import InvalidMultibaseError, InvalidUAIDError
from org.hol.uaid.model.resolution import (
    ERR_INVALID_UAID,
    UAID_DNS_WEB_PROFILE_ID,
    DIDDocument,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.model.uaid import ParsedUAID
from org.hol.uaid.resolve.base import (
    DIDProfileResolver,
    DIDProfileResolverContext,
    DIDResolver,
    UAIDProfileResolver,
    UAIDProfileResolverContext,
)

logger = logging.getLogger(__name__)


def dedupe_strings(values: Iterable[str]) -> List[str]:
    """Trim, drop blanks and remove duplicates while keeping first-seen order."""
    seen = set()
    output = []
    for value in values:
        trimmed = value.strip()
        if trimmed == "" or trimmed in seen:
            continue
        seen.add(trimmed)
        output.append(trimmed)
    return output


def derive_did_from_parsed_uaid(parsed: ParsedUAID) -> str:
    """Derive the base DID a UAID points to.

    Rules, in priority order:

    1. ``aid`` with ``proto=hcs-10`` and a Hedera CAIP-10 ``nativeId`` gives
       ``did:hedera:<network>:<account>``; no other ``aid`` has a DID.
    2. ``did`` with a ``src`` that decodes to a ``did:`` string uses it verbatim.
    3. ``did`` whose identifier starts with a Hedera network gives ``did:hedera:<id>``.
    4. ``did`` with ``proto=hcs-10`` and Hedera CAIP-10 ``nativeId`` gives
       ``did:hedera:<network>:<id>``.

    Returns:
        The derived DID, or the empty string if none is derivable
    """
    proto = parsed.param("proto")
    native_id = parsed.param("nativeId")

    if parsed.target == "aid":
        if proto == "hcs-10":
            hedera = parse_hedera_caip10(native_id)
            if hedera is not None:
                network, account_id = hedera
                return f"did:hedera:{network}:{account_id}"
        return ""

    src = parsed.param("src")
    if src != "":
        try:
            decoded = decode_multibase_b58btc(src).decode("utf-8", errors="replace").strip()
        except InvalidMultibaseError:
            decoded = ""
        if decoded.startswith("did:"):
            return decoded

    identifier = parsed.id.strip()
    if identifier.startswith(HEDERA_NETWORK_PREFIXES):
        return f"did:hedera:{identifier}"

    if proto == "hcs-10":
        hedera = parse_hedera_caip10(native_id)
        if hedera is not None:
            return f"did:hedera:{hedera[0]}:{identifier}"

    return ""


def build_fallback_profile(
    id: str, did: str, did_document: Optional[DIDDocument]
) -> UAIDResolutionResult:
    """Build the DID-document backed profile used under strategy results."""
    also_known_as = []
    if did != "" and did != id:
        also_known_as.append(did)
    if did_document is not None:
        also_known_as.extend(did_document.also_known_as)

    result = UAIDResolutionResult(id=id, did=did, also_known_as=dedupe_strings(also_known_as))
    if did_document is not None:
        result.verification_method = [
            method.model_copy() for method in did_document.verification_method
        ]
        result.authentication = list(did_document.authentication)
        result.assertion_method = list(did_document.assertion_method)
        result.service = [service.model_copy() for service in did_document.service]
    return result


def merge_resolution_result(
    fallback: Optional[UAIDResolutionResult], resolved: Optional[UAIDResolutionResult]
) -> Optional[UAIDResolutionResult]:
    """Overlay a strategy result on the fallback profile.

    Each field of ``resolved`` wins when it is non-empty. Also-known-as values
    are concatenated and deduplicated instead of replaced.
    """
    if fallback is None:
        return resolved
    if resolved is None:
        return fallback

    merged = fallback.model_copy(deep=True)
    if resolved.id.strip() != "":
        merged.id = resolved.id
    if resolved.did.strip() != "":
        merged.did = resolved.did
    if len(resolved.also_known_as) > 0:
        merged.also_known_as = dedupe_strings([*merged.also_known_as, *resolved.also_known_as])
    if len(resolved.verification_method) > 0:
        merged.verification_method = [m.model_copy() for m in resolved.verification_method]
    if len(resolved.authentication) > 0:
        merged.authentication = list(resolved.authentication)
    if len(resolved.assertion_method) > 0:
        merged.assertion_method = list(resolved.assertion_method)
    if len(resolved.service) > 0:
        merged.service = [s.model_copy() for s in resolved.service]
    if not resolved.metadata.is_empty():
        merged.metadata = resolved.metadata.model_copy()
    if resolved.error is not None:
        merged.error = resolved.error.model_copy()
    return merged


class ResolverRegistry:
    """
    Ordered collections of DID resolvers, DID profile resolvers and UAID
    strategies, plus the dispatch logic across them.

    Register everything before resolving concurrently; the lists are treated as
    read-only once resolution starts.
    """

    def __init__(self) -> None:
        self._did_resolvers: List[DIDResolver] = []
        self._did_profile_resolvers: List[DIDProfileResolver] = []
        self._uaid_profile_resolvers: List[UAIDProfileResolver] = []

    def register_did_resolver(self, resolver: DIDResolver) -> None:
        self._did_resolvers.append(resolver)

    def register_did_profile_resolver(self, resolver: DIDProfileResolver) -> None:
        self._did_profile_resolvers.append(resolver)

    def register_uaid_profile_resolver(self, resolver: UAIDProfileResolver) -> None:
        self._uaid_profile_resolvers.append(resolver)

    @property
    def uaid_profile_resolvers(self) -> List[UAIDProfileResolver]:
        return list(self._uaid_profile_resolvers)

    async def resolve_did(self, did: str) -> Optional[DIDDocument]:
        """Resolve a DID with the first supporting resolver that returns a document.

        Returns:
            DIDDocument, or None if no resolver produced one
        """
        for resolver in self._did_resolvers:
            if not resolver.supports(did):
                continue
            document = await resolver.resolve(did)
            if document is not None:
                return document
        return None

    async def resolve_uaid_profile(
        self, uaid: str, profile_id: Optional[str] = None
    ) -> Optional[UAIDResolutionResult]:
        """Resolve a UAID to a profile.

        Args:
            uaid: UAID to resolve
            profile_id: Restrict dispatch to the strategy with this profile id

        Returns:
            The merged profile of the first successful strategy. When a
            profile id was requested its failure result is returned as-is,
            or None if it produced nothing. Without a profile id and no
            matching strategy: the DID-document fallback when a base DID is
            derivable, a bare unresolved result for ``aid`` targets, None for
            ``did`` targets.
        """
        try:
            parsed = parse_uaid(uaid)
        except InvalidUAIDError as e:
            return resolution_error(uaid, UAID_DNS_WEB_PROFILE_ID, ERR_INVALID_UAID, str(e))

        derived_did = derive_did_from_parsed_uaid(parsed)
        did_document = None
        if derived_did != "":
            did_document = await self.resolve_did(derived_did)

        profile = await self._resolve_uaid_profile_internal(
            uaid, parsed, derived_did, did_document, profile_id, None
        )
        if profile is not None:
            return profile

        if profile_id:
            return None

        if derived_did == "":
            if parsed.target == "aid":
                return UAIDResolutionResult(id=uaid)
            return None

        return build_fallback_profile(uaid, derived_did, did_document)

    async def _resolve_uaid_profile_by_id(
        self, profile_id: str, uaid: str, exclude_profile_id: str
    ) -> Optional[UAIDResolutionResult]:
        try:
            parsed = parse_uaid(uaid)
        except InvalidUAIDError:
            return None

        derived_did = derive_did_from_parsed_uaid(parsed)
        did_document = None
        if derived_did != "":
            did_document = await self.resolve_did(derived_did)

        return await self._resolve_uaid_profile_internal(
            uaid, parsed, derived_did, did_document, profile_id, exclude_profile_id
        )

    def _select_resolvers(
        self,
        uaid: str,
        parsed: ParsedUAID,
        profile_id: Optional[str],
        exclude_profile_id: Optional[str],
    ) -> List[UAIDProfileResolver]:
        selected = []
        for resolver in self._uaid_profile_resolvers:
            if exclude_profile_id and resolver.profile_id == exclude_profile_id:
                continue
            if profile_id:
                if resolver.profile_id == profile_id:
                    selected.append(resolver)
            elif resolver.supports(uaid, parsed):
                selected.append(resolver)
        return selected

    def _build_context(
        self,
        resolver: UAIDProfileResolver,
        parsed: ParsedUAID,
        derived_did: str,
        did_document: Optional[DIDDocument],
    ) -> UAIDProfileResolverContext:
        async def resolve_uaid_profile_by_id(
            requested_profile_id: str, requested_uaid: str
        ) -> Optional[UAIDResolutionResult]:
            return await self._resolve_uaid_profile_by_id(
                requested_profile_id, requested_uaid, resolver.profile_id
            )

        return UAIDProfileResolverContext(
            parsed_uaid=parsed,
            did=derived_did,
            did_document=did_document,
            resolve_did=self.resolve_did,
            resolve_did_profile=self.resolve_did_profile,
            resolve_uaid_profile_by_id=resolve_uaid_profile_by_id,
        )

    async def _resolve_uaid_profile_internal(
        self,
        uaid: str,
        parsed: ParsedUAID,
        derived_did: str,
        did_document: Optional[DIDDocument],
        profile_id: Optional[str],
        exclude_profile_id: Optional[str],
    ) -> Optional[UAIDResolutionResult]:
        fallback = build_fallback_profile(uaid, derived_did, did_document)

        for resolver in self._select_resolvers(uaid, parsed, profile_id, exclude_profile_id):
            logger.debug("resolving %s with %s", uaid, resolver.profile_id)
            context = self._build_context(resolver, parsed, derived_did, did_document)
            resolved = await resolver.resolve_profile(uaid, context)
            if resolved is None:
                continue

            if resolved.is_error:
                if not profile_id:
                    logger.debug(
                        "profile %s not applicable to %s: %s",
                        resolver.profile_id,
                        uaid,
                        resolved.error.code if resolved.error else "unresolved",
                    )
                    continue
                return resolved

            return merge_resolution_result(fallback, resolved)

        return None

    async def resolve_did_profile(
        self, did: str, context: DIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        """Resolve a DID into a profile through the registered DID profile resolvers.

        The first DID profile resolver returning a result is merged over the
        DID-document fallback; without one, the fallback itself is returned.
        """
        if context.did_document is not None:
            did_document = context.did_document
        else:
            did_document = await self.resolve_did(did)

        fallback = build_fallback_profile(context.uaid or did, did, did_document)
        for resolver in self._did_profile_resolvers:
            resolved = await resolver.resolve_profile(
                did,
                DIDProfileResolverContext(
                    uaid=context.uaid,
                    parsed_uaid=context.parsed_uaid,
                    did_document=did_document,
                ),
            )
            if resolved is not None:
                return merge_resolution_result(fallback, resolved)
        return fallback
