"""
UAID Resolution

This package resolves Universal Agent Identifiers (HCS-14 UAIDs) into
verifiable profiles: service endpoints, verification material and provenance
metadata.

Key Components:
- registry.py: Resolver registry, DID-backed fallback profiles and result merging
- uaid_dns_web.py: ``_uaid`` DNS binding profile with followup delegation
- ans_dns_web.py: ANS ``_ans`` DNS record and agent card profile
- aid_dns_web.py: ``_agent`` DNS endpoint profile with layered verification
- did_resolution.py: ``uaid:did`` profile backed by the base DID document
- dns.py: Default TXT lookup
- client.py: Registry pre-wired with the four profiles
- __main__.py: CLI interface for resolution

Resolution flow:
1. Parse the UAID and derive its base DID, if any
2. Resolve the base DID document to build a fallback profile
3. Try each profile that supports the UAID, in registration order
4. Merge the first successful result over the fallback

Protocol outcomes (not applicable, record mismatch, unanchored endpoint,
failed verification ...) are returned as results with ``metadata.resolved``
set to False and a structured error code. Only transport failures raise.
"""
