"""Nonce helpers."""

import secrets

# Permit2-style unordered nonces: the low byte selects a bit inside a 256-bit word,
# so fresh nonces start at bit 0 of a random word.
_WORD_BITS = 248
_BIT_POSITION_BITS = 8


def generate_random_nonce() -> str:
    """
    Return a random uint256 nonce as a decimal string.

    Used when an offerer has no nonce recorded on a chain yet.
    """
    return str(secrets.randbits(_WORD_BITS) << _BIT_POSITION_BITS)
