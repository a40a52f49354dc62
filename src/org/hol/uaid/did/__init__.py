"""
DID Resolvers

Pluggable ``DIDResolver`` implementations for the resolver registry. They fetch
DID documents over HTTPS and feed the DID-backed fallback profile and the
``uaid:did`` resolution profile.

Key Components:
- document.py: Lenient conversion of raw DID document JSON into ``DIDDocument``
- web.py: did:web resolution via ``https://<host>/.well-known/did.json``
- plc.py: did:plc resolution via a PLC directory
"""
