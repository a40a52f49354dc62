"""
Resolver contracts.

Three pluggable resolver kinds are held by the ``ResolverRegistry``:

- ``DIDResolver``: turns a DID into a ``DIDDocument``
- ``DIDProfileResolver``: turns a DID (plus its document) into a profile
- ``UAIDProfileResolver``: one HCS-14 resolution strategy, identified by a
  stable profile id

UAID strategies never reach back into the registry directly. Everything they
may need from it arrives in a ``UAIDProfileResolverContext`` built per call,
including the callback used to delegate to another strategy by profile id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from org.hol.uaid.model.resolution import DIDDocument, UAIDResolutionResult
from org.hol.uaid.model.uaid import ParsedUAID


@dataclass(frozen=True)
class DIDProfileResolverContext:
    uaid: str = ""
    parsed_uaid: Optional[ParsedUAID] = None
    did_document: Optional[DIDDocument] = None


ResolveDIDFunc = Callable[[str], Awaitable[Optional[DIDDocument]]]

ResolveDIDProfileFunc = Callable[
    [str, DIDProfileResolverContext], Awaitable[Optional[UAIDResolutionResult]]
]

ResolveUAIDProfileByIDFunc = Callable[[str, str], Awaitable[Optional[UAIDResolutionResult]]]
"""``(profile_id, uaid)`` re-entry into registry dispatch, excluding the caller"""

FollowupResolverFunc = Callable[[str], Awaitable[Optional[UAIDResolutionResult]]]


@dataclass(frozen=True)
class UAIDProfileResolverContext:
    """Per-call bundle handed to a UAID strategy by the registry.

    Attributes:
        parsed_uaid: The UAID being resolved
        did: Base DID derived from the UAID, empty if none is derivable
        did_document: Document resolved for ``did``, if any
        resolve_did: Resolve a DID through the registered DID resolvers
        resolve_did_profile: Resolve a DID through the registered DID profile resolvers
        resolve_uaid_profile_by_id: Delegate to another strategy by profile id
    """

    parsed_uaid: ParsedUAID
    did: str = ""
    did_document: Optional[DIDDocument] = None
    resolve_did: Optional[ResolveDIDFunc] = None
    resolve_did_profile: Optional[ResolveDIDProfileFunc] = None
    resolve_uaid_profile_by_id: Optional[ResolveUAIDProfileByIDFunc] = None


class DIDResolver(ABC):
    """Pluggable DID method resolver."""

    @abstractmethod
    def supports(self, did: str) -> bool:
        pass

    @abstractmethod
    async def resolve(self, did: str) -> Optional[DIDDocument]:
        """
        Resolve a DID to its document.

        Returns None when the DID has no document. Transport failures are raised.
        """
        pass


class DIDProfileResolver(ABC):
    @abstractmethod
    async def resolve_profile(
        self, did: str, context: DIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        pass


class UAIDProfileResolver(ABC):
    """
    One HCS-14 UAID resolution strategy.

    ``resolve_profile`` returns an unresolved result carrying a
    ``UAIDResolutionError`` for every protocol-level outcome (not applicable,
    malformed record, mismatch, failed verification). Exceptions are reserved
    for unexpected transport failures and propagate to the caller.
    """

    @property
    @abstractmethod
    def profile_id(self) -> str:
        pass

    @abstractmethod
    def supports(self, uaid: str, parsed: ParsedUAID) -> bool:
        pass

    @abstractmethod
    async def resolve_profile(
        self, uaid: str, context: UAIDProfileResolverContext
    ) -> Optional[UAIDResolutionResult]:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(profile={self.profile_id})"
