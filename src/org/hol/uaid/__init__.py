"""
HCS-14 Universal Agent Identifier (UAID) toolkit.

Deterministic UAID construction and parsing (:mod:`org.hol.uaid.canonical`),
the resolver registry and its DNS / DID resolution profiles
(:mod:`org.hol.uaid.resolve`), and an aiohttp service exposing resolution
over HTTP (:mod:`org.hol.uaid.app`).
"""
