"""
Encoding Primitives

Low-level helpers shared by the canonicalizer and the resolution strategies.

Key Components:
- base58.py: Bitcoin-alphabet base58 codec and multibase (base58btc) decoding
- fields.py: FQDN validation, semicolon-delimited TXT field parsing, CAIP-10 checks
"""
