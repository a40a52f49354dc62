"""Resolution result models, DID document models, profile ids and error codes."""

from typing import Any, Dict, Final, List, Optional

from pydantic import Field

from org.hol.uaid.model.base import CamelModel

UAID_DNS_WEB_PROFILE_ID: Final = "hcs-14.profile.uaid-dns-web"
"""Profile id of the ``_uaid`` DNS binding strategy"""

ANS_DNS_WEB_PROFILE_ID: Final = "hcs-14.profile.ans-dns-web"
"""Profile id of the ANS ``_ans`` agent card strategy"""

AID_DNS_WEB_PROFILE_ID: Final = "hcs-14.profile.aid-dns-web"
"""Profile id of the ``_agent`` DNS endpoint strategy"""

UAID_DID_RESOLUTION_PROFILE_ID: Final = "hcs-14.profile.uaid-did-resolution"
"""Profile id of the DID document backed strategy"""

ERR_INVALID_UAID: Final = "ERR_INVALID_UAID"
ERR_NOT_APPLICABLE: Final = "ERR_NOT_APPLICABLE"
ERR_NO_DNS_RECORD: Final = "ERR_NO_DNS_RECORD"
ERR_INVALID_UAID_DNS_RECORD: Final = "ERR_INVALID_UAID_DNS_RECORD"
ERR_UAID_MISMATCH: Final = "ERR_UAID_MISMATCH"
ERR_FOLLOWUP_RESOLUTION_FAILED: Final = "ERR_FOLLOWUP_RESOLUTION_FAILED"
ERR_NO_FOLLOWUP_PROFILE: Final = "ERR_NO_FOLLOWUP_PROFILE"
ERR_PROTOCOL_UNSPECIFIED: Final = "ERR_PROTOCOL_UNSPECIFIED"
ERR_INVALID_ANS_RECORD: Final = "ERR_INVALID_ANS_RECORD"
ERR_VERSION_MISMATCH: Final = "ERR_VERSION_MISMATCH"
ERR_AGENT_CARD_INVALID: Final = "ERR_AGENT_CARD_INVALID"
ERR_ENDPOINT_NOT_ANCHORED: Final = "ERR_ENDPOINT_NOT_ANCHORED"
ERR_ENDPOINT_NOT_FOUND: Final = "ERR_ENDPOINT_NOT_FOUND"
ERR_INVALID_AID_RECORD: Final = "ERR_INVALID_AID_RECORD"
ERR_ENDPOINT_INVALID: Final = "ERR_ENDPOINT_INVALID"
ERR_VERIFICATION_FAILED: Final = "ERR_VERIFICATION_FAILED"
ERR_BASE_DID_UNDETERMINED: Final = "ERR_BASE_DID_UNDETERMINED"
ERR_DID_RESOLUTION_FAILED: Final = "ERR_DID_RESOLUTION_FAILED"
ERR_DID_DOCUMENT_INVALID: Final = "ERR_DID_DOCUMENT_INVALID"


class ServiceEndpoint(CamelModel):
    """A reachable agent interface."""

    id: str = ""
    type: str = ""
    service_endpoint: str = ""
    source: str = ""


class DIDVerificationMethod(CamelModel):
    id: str = ""
    type: str = ""
    controller: str = ""
    public_key_multibase: str = ""
    blockchain_account_id: str = ""


class DIDDocument(CamelModel):
    """DID document as returned by a DID resolver.

    Only the members used by UAID resolution are modelled.
    """

    id: str = ""
    also_known_as: List[str] = Field(default_factory=list)
    verification_method: List[DIDVerificationMethod] = Field(default_factory=list)
    authentication: List[str] = Field(default_factory=list)
    assertion_method: List[str] = Field(default_factory=list)
    service: List[ServiceEndpoint] = Field(default_factory=list)


class UAIDMetadata(CamelModel):
    """Resolution provenance.

    ``resolved=False`` together with ``UAIDResolutionResult.error`` signals a
    failed or inapplicable resolution.
    """

    profile: str = ""
    resolved: bool = False
    verification_level: str = ""
    verification_method: str = ""
    precedence_source: str = ""
    resolution_mode: str = ""
    selected_followup_profile: str = ""
    reconstructed_uaid: str = Field(default="", alias="reconstructedUAID")
    base_did: str = Field(default="", alias="baseDID")
    base_did_resolved: bool = Field(default=False, alias="baseDIDResolved")
    protocol: str = ""
    endpoint: str = ""
    agent_card_url: str = Field(default="", alias="agentCardURL")

    def is_empty(self) -> bool:
        return self == UAIDMetadata()


class UAIDResolutionError(CamelModel):
    """Structured resolution failure, intended for programmatic branching on ``code``."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class UAIDResolutionResult(CamelModel):
    """Outcome of resolving a UAID."""

    id: str
    did: str = ""
    also_known_as: List[str] = Field(default_factory=list)
    verification_method: List[DIDVerificationMethod] = Field(default_factory=list)
    authentication: List[str] = Field(default_factory=list)
    assertion_method: List[str] = Field(default_factory=list)
    service: List[ServiceEndpoint] = Field(default_factory=list)
    metadata: UAIDMetadata = Field(default_factory=UAIDMetadata)
    error: Optional[UAIDResolutionError] = None

    @property
    def is_error(self) -> bool:
        """True when the result carries an error or is not marked resolved."""
        return self.error is not None or not self.metadata.resolved


def resolution_error(
    uaid: str,
    profile: str,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> UAIDResolutionResult:
    """Build an unresolved result tagged with a structured error.

    Args:
        uaid: UAID being resolved
        profile: Profile id reporting the failure
        code: Stable ``ERR_*`` code
        message: Human readable description
        details: Optional structured context (dnsName, expected values ...)

    Returns:
        UAIDResolutionResult with ``metadata.resolved=False``
    """
    return UAIDResolutionResult(
        id=uaid,
        metadata=UAIDMetadata(profile=profile, resolved=False),
        error=UAIDResolutionError(code=code, message=message, details=details),
    )
