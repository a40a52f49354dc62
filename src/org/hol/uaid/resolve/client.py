"""UAID client: a registry pre-wired with the four HCS-14 resolution profiles."""

import logging
from typing import TYPE_CHECKING, Collection, Optional

from aiohttp import ClientSession

from org.hol.uaid.did.plc import PLCDIDResolver
from org.hol.uaid.did.web import WebDIDResolver
from org.hol.uaid.model.resolution import (
    AID_DNS_WEB_PROFILE_ID,
    ANS_DNS_WEB_PROFILE_ID,
    ERR_NOT_APPLICABLE,
    UAID_DID_RESOLUTION_PROFILE_ID,
    UAID_DNS_WEB_PROFILE_ID,
    UAIDResolutionResult,
    resolution_error,
)
from org.hol.uaid.resolve.aid_dns_web import AIDDNSWebResolver, AIDVerifier
from org.hol.uaid.resolve.ans_dns_web import ANSDNSWebResolver
from org.hol.uaid.resolve.did_resolution import UAIDDidResolutionResolver
from org.hol.uaid.resolve.dns import DNSLookupFunc, create_txt_lookup
from org.hol.uaid.resolve.registry import ResolverRegistry
from org.hol.uaid.resolve.uaid_dns_web import UAIDDNSWebResolver

if TYPE_CHECKING:
    from org.hol.uaid.app.config import Settings

logger = logging.getLogger(__name__)


class UAIDClient:
    """Resolve UAIDs with the standard HCS-14 profiles.

    Strategies are registered in the order UAID-DNS-Web, ANS-DNS-Web,
    AID-DNS-Web, UAID-DID-Resolution. Followup resolution from the DNS binding
    profile is always enabled unless full resolution is required, in which case
    ``enable_followup_resolution`` decides.

    Example:
        >>> async with aiohttp.ClientSession() as session:
        ...     client = UAIDClient(session=session)
        ...     result = await client.resolve("uaid:aid:...;registry=ans;...")
        ...     print(result.metadata.endpoint)
    """

    def __init__(
        self,
        dns_lookup: Optional[DNSLookupFunc] = None,
        session: Optional[ClientSession] = None,
        require_full_resolution: bool = False,
        enable_followup_resolution: bool = False,
        ans_supported_schemes: Optional[Collection[str]] = None,
        aid_supported_schemes: Optional[Collection[str]] = None,
        metadata_verifier: Optional[AIDVerifier] = None,
        crypto_verifier: Optional[AIDVerifier] = None,
        http_timeout: float = 30.0,
        registry: Optional[ResolverRegistry] = None,
    ) -> None:
        if not require_full_resolution:
            enable_followup_resolution = True

        self._registry = registry if registry is not None else ResolverRegistry()

        self._uaid_dns_resolver = UAIDDNSWebResolver(
            dns_lookup=dns_lookup,
            require_full_resolution=require_full_resolution,
            enable_followup_resolution=enable_followup_resolution,
        )
        self._ans_dns_resolver = ANSDNSWebResolver(
            dns_lookup=dns_lookup,
            session=session,
            supported_schemes=ans_supported_schemes,
            timeout=http_timeout,
        )
        self._aid_dns_resolver = AIDDNSWebResolver(
            dns_lookup=dns_lookup,
            supported_schemes=aid_supported_schemes,
            metadata_verifier=metadata_verifier,
            crypto_verifier=crypto_verifier,
        )
        self._uaid_did_resolver = UAIDDidResolutionResolver()

        self._registry.register_uaid_profile_resolver(self._uaid_dns_resolver)
        self._registry.register_uaid_profile_resolver(self._ans_dns_resolver)
        self._registry.register_uaid_profile_resolver(self._aid_dns_resolver)
        self._registry.register_uaid_profile_resolver(self._uaid_did_resolver)

    @classmethod
    def from_settings(cls, settings: "Settings", session: ClientSession) -> "UAIDClient":
        """Build a client from service settings, with did:web and did:plc resolvers registered."""
        registry = ResolverRegistry()
        registry.register_did_resolver(WebDIDResolver(session))
        registry.register_did_resolver(PLCDIDResolver(session, settings.plc_hostname))

        return cls(
            dns_lookup=create_txt_lookup(settings.dns_nameservers, settings.dns_timeout),
            session=session,
            require_full_resolution=settings.require_full_resolution,
            enable_followup_resolution=settings.enable_followup_resolution,
            ans_supported_schemes=settings.ans_supported_schemes,
            aid_supported_schemes=settings.aid_supported_schemes,
            http_timeout=settings.http_timeout,
            registry=registry,
        )

    @property
    def registry(self) -> ResolverRegistry:
        return self._registry

    @property
    def uaid_dns_resolver(self) -> UAIDDNSWebResolver:
        return self._uaid_dns_resolver

    @property
    def ans_dns_resolver(self) -> ANSDNSWebResolver:
        return self._ans_dns_resolver

    @property
    def aid_dns_resolver(self) -> AIDDNSWebResolver:
        return self._aid_dns_resolver

    @property
    def uaid_did_resolver(self) -> UAIDDidResolutionResolver:
        return self._uaid_did_resolver

    async def resolve(self, uaid: str) -> UAIDResolutionResult:
        """Resolve a UAID with whichever profile applies.

        Returns:
            The resolved profile, or an ``ERR_NOT_APPLICABLE`` result when no
            profile matched
        """
        result = await self._registry.resolve_uaid_profile(uaid)
        if result is not None:
            return result

        return resolution_error(
            uaid,
            UAID_DNS_WEB_PROFILE_ID,
            ERR_NOT_APPLICABLE,
            "no supported HCS-14 profile matched for this UAID",
        )

    async def resolve_profile(self, uaid: str, profile_id: str) -> Optional[UAIDResolutionResult]:
        """Resolve a UAID with one specific profile, returning its failure result as-is."""
        return await self._registry.resolve_uaid_profile(uaid, profile_id)

    async def resolve_uaid_dns_web(self, uaid: str) -> Optional[UAIDResolutionResult]:
        return await self.resolve_profile(uaid, UAID_DNS_WEB_PROFILE_ID)

    async def resolve_ans_dns_web(self, uaid: str) -> Optional[UAIDResolutionResult]:
        return await self.resolve_profile(uaid, ANS_DNS_WEB_PROFILE_ID)

    async def resolve_aid_dns_web(self, uaid: str) -> Optional[UAIDResolutionResult]:
        return await self.resolve_profile(uaid, AID_DNS_WEB_PROFILE_ID)

    async def resolve_uaid_did_resolution(self, uaid: str) -> Optional[UAIDResolutionResult]:
        return await self.resolve_profile(uaid, UAID_DID_RESOLUTION_PROFILE_ID)
