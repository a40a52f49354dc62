"""
UAID Data Models

Pydantic models shared by the canonicalizer, the resolver registry and the
resolution strategies.

Key Components:
- uaid.py: Parsed UAIDs and the inputs used to mint new identifiers
- resolution.py: Resolution results, provenance metadata, DID documents,
  profile identifiers and stable error codes

Field names are snake_case in Python and serialize to the camelCase names used
by DID documents and the HCS-14 wire formats (``alsoKnownAs``,
``serviceEndpoint``, ``nativeId`` ...). Use ``model_dump(by_alias=True)`` for
wire output.
"""
