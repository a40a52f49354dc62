"""Typed exceptions for UAID construction and parsing.

Resolution outcomes are never raised: strategies report them as
``UAIDResolutionResult`` values carrying a ``UAIDResolutionError``. The
exceptions here cover the raising channel only, which is malformed input handed
to the codec and canonicalizer functions.
"""


class UAIDError(Exception):
    """Base exception for UAID handling."""


class InvalidUAIDError(UAIDError):
    """The value is not a well-formed ``uaid:aid:`` or ``uaid:did:`` string."""


class CanonicalizationError(UAIDError):
    """Agent data or an existing DID cannot be turned into a UAID.

    Raised for missing required fields, CAIP-10 violations and malformed DIDs.
    """


class InvalidBase58CharacterError(UAIDError, ValueError):
    """Input contains a character outside the base58 alphabet."""

    def __init__(self, character: str):
        super().__init__(f"invalid base58 character: {character!r}")
        self.character = character


class InvalidMultibaseError(UAIDError, ValueError):
    """Input is not a ``z``-prefixed base58btc multibase string."""
