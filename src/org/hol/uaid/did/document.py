"""DID document JSON conversion."""

from typing import Any, Dict, List

from org.hol.uaid.model.resolution import DIDDocument, DIDVerificationMethod, ServiceEndpoint


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _verification_methods(value: Any) -> List[DIDVerificationMethod]:
    if not isinstance(value, list):
        return []
    methods = []
    for item in value:
        if not isinstance(item, dict):
            continue
        methods.append(
            DIDVerificationMethod(
                id=item.get("id") or "",
                type=item.get("type") or "",
                controller=item.get("controller") or "",
                public_key_multibase=item.get("publicKeyMultibase") or "",
                blockchain_account_id=item.get("blockchainAccountId") or "",
            )
        )
    return methods


def _services(value: Any) -> List[ServiceEndpoint]:
    if not isinstance(value, list):
        return []
    services = []
    for item in value:
        if not isinstance(item, dict):
            continue
        endpoint = item.get("serviceEndpoint")
        # map and list endpoints have no single URI to offer
        if not isinstance(endpoint, str):
            continue
        services.append(
            ServiceEndpoint(
                id=item.get("id") or "",
                type=item.get("type") or "",
                service_endpoint=endpoint,
                source="did-document",
            )
        )
    return services


def did_document_from_json(body: Dict[str, Any]) -> DIDDocument:
    """Convert a raw DID document into a ``DIDDocument``.

    Embedded (non-string) authentication and assertion entries are dropped.

    Args:
        body: Decoded DID document JSON

    Returns:
        DIDDocument
    """
    return DIDDocument(
        id=body.get("id") if isinstance(body.get("id"), str) else "",
        also_known_as=_strings(body.get("alsoKnownAs")),
        verification_method=_verification_methods(body.get("verificationMethod")),
        authentication=_strings(body.get("authentication")),
        assertion_method=_strings(body.get("assertionMethod")),
        service=_services(body.get("service")),
    )
