# microstellar/address_utils.py
"""Address and seed validation utilities."""

from stellar_sdk import Keypair, StrKey


FEDERATION_MARKER = '*'


def valid_address(address: str) -> bool:
    """
    Check that address is a well formed public key.

    Structural check only (prefix, base32 charset, length, CRC16
    checksum); the network is not contacted.
    """
    if not isinstance(address, str):
        return False
    return StrKey.is_valid_ed25519_public_key(address)


def valid_seed(seed: str) -> bool:
    """Check that seed is a well formed secret seed."""
    if not isinstance(seed, str):
        return False
    return StrKey.is_valid_ed25519_secret_seed(seed)


def valid_address_or_seed(address_or_seed: str) -> bool:
    return valid_address(address_or_seed) or valid_seed(address_or_seed)


def address_from_seed(seed: str) -> str:
    """
    Derive the public address for a seed.

    Args:
        seed: Secret seed (S...)

    Returns:
        Public key string (G...)
    """
    return Keypair.from_secret(seed).public_key


def source_address(address_or_seed: str) -> str:
    """Return the address for a seed, or the value itself for an address."""
    if valid_seed(address_or_seed):
        return address_from_seed(address_or_seed)
    return address_or_seed


def is_federation_address(value: str) -> bool:
    return bool(value) and FEDERATION_MARKER in value
