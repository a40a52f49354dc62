"""Base58 (Bitcoin alphabet) codec and multibase base58btc helpers.

Thin wrappers over the ``base58`` package that add strict alphabet checking,
so malformed input surfaces as the UAID exception types instead of a bare
``ValueError``.
"""

import base58

from org.hol.uaid.exceptions import InvalidBase58CharacterError, InvalidMultibaseError

BASE58_ALPHABET = base58.BITCOIN_ALPHABET.decode("ascii")

_ALPHABET = frozenset(BASE58_ALPHABET)


def base58_encode(data: bytes) -> str:
    """Encode bytes as base58.

    Leading zero bytes become leading ``1`` characters. Empty input encodes to
    the empty string.

    Args:
        data: Bytes to encode

    Returns:
        Base58 string
    """
    return base58.b58encode(data).decode("ascii")


def base58_decode(value: str) -> bytes:
    """Decode a base58 string.

    Args:
        value: Base58 string

    Returns:
        Decoded bytes

    Raises:
        InvalidBase58CharacterError: If a character is outside the alphabet
    """
    for character in value:
        if character not in _ALPHABET:
            raise InvalidBase58CharacterError(character)
    return base58.b58decode(value)


def decode_multibase_b58btc(value: str) -> bytes:
    """Decode a ``z``-prefixed multibase (base58btc) string.

    Raises:
        InvalidMultibaseError: If the prefix is missing or the payload is not base58
    """
    if len(value) < 2 or not value.startswith("z"):
        raise InvalidMultibaseError("invalid multibase base58btc")
    try:
        return base58_decode(value[1:])
    except InvalidBase58CharacterError as e:
        raise InvalidMultibaseError("invalid multibase base58btc") from e


def encode_multibase_b58btc(data: bytes) -> str:
    return "z" + base58_encode(data)
