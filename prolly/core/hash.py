"""
Hashing functions for Prolly.

Every sketch addresses its cells through the same path: a value is normalised
to bytes, hashed by one of a closed set of named hash functions, and reduced
modulo the size of the array being addressed.

Digest-based hashes (md5, sha, sha256) come from hashlib and are read as a
single big-endian unsigned integer. The 32-bit MurmurHash3 and FNV-1a variants
are pure Python and require no external dependencies.
"""

import hashlib
from typing import Any, Callable, Dict, Iterable, Tuple

HashFunction = Callable[[bytes], int]


def canonical_bytes(value: Any) -> bytes:
    """
    Normalise a value to the byte string that gets hashed.

    Bytes are used as is, strings are UTF-8 encoded and anything else is
    converted with str() first, so 12345 and "12345" hash identically.
    Lone surrogates (as produced by os.fsdecode) are encoded as their raw
    code units instead of failing.

    Args:
        value: The value to normalise.

    Returns:
        The canonical byte representation of the value.
    """
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        value = str(value)
    return value.encode("utf-8", "surrogatepass")


def murmurhash3_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of MurmurHash3 (32-bit variant).

    MurmurHash is a non-cryptographic hash function suitable for general hash-based
    lookup. It's known for being fast, having good distribution, and minimizing collisions.

    Args:
        key: The key to hash (will be converted to bytes if not already)
        seed: Optional seed for the hash

    Returns:
        32-bit hash value
    """
    key_bytes = canonical_bytes(key)
    length = len(key_bytes)

    # MurmurHash3 constants
    c1 = 0xCC9E2D51
    c2 = 0x1B873593

    h = seed & 0xFFFFFFFF

    # Body: 4-byte little-endian blocks
    nblocks = length // 4
    for i in range(nblocks):
        k = int.from_bytes(key_bytes[i * 4 : i * 4 + 4], "little")

        k = (k * c1) & 0xFFFFFFFF
        k = ((k << 15) | (k >> 17)) & 0xFFFFFFFF  # rotl32(k, 15)
        k = (k * c2) & 0xFFFFFFFF

        h ^= k
        h = ((h << 13) | (h >> 19)) & 0xFFFFFFFF  # rotl32(h, 13)
        h = (h * 5 + 0xE6546B64) & 0xFFFFFFFF

    # Tail: the remaining 0-3 bytes
    k = 0
    idx = nblocks * 4
    tail = length & 3

    if tail >= 3:
        k ^= key_bytes[idx + 2] << 16
    if tail >= 2:
        k ^= key_bytes[idx + 1] << 8
    if tail >= 1:
        k ^= key_bytes[idx]
        k = (k * c1) & 0xFFFFFFFF
        k = ((k << 15) | (k >> 17)) & 0xFFFFFFFF
        k = (k * c2) & 0xFFFFFFFF
        h ^= k

    # Finalization mixing
    h ^= length
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & 0xFFFFFFFF
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & 0xFFFFFFFF
    h ^= h >> 16

    return h & 0xFFFFFFFF


def fnv1a_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of FNV-1a hash (32-bit variant).

    FNV-1a is a simple but effective non-cryptographic hash function.
    It's slightly faster than MurmurHash3 but with slightly less uniform distribution.

    Args:
        key: The key to hash (will be converted to bytes if not already)
        seed: Optional seed value (modifies the initial hash value)

    Returns:
        32-bit hash value
    """
    key_bytes = canonical_bytes(key)

    FNV_PRIME = 16777619
    FNV_OFFSET_BASIS = 2166136261

    h = (FNV_OFFSET_BASIS ^ seed) & 0xFFFFFFFF

    for byte in key_bytes:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF

    return h


def _digest(algorithm: str) -> HashFunction:
    """Build a hash function that reads a hashlib digest as a big-endian integer."""

    def digest_to_int(data: bytes) -> int:
        return int.from_bytes(hashlib.new(algorithm, data).digest(), "big")

    digest_to_int.__name__ = f"{algorithm}_digest"
    return digest_to_int


# The closed set of supported hash functions, keyed by canonical name
HASH_FUNCTIONS: Dict[str, HashFunction] = {
    "md5": _digest("md5"),
    "sha": _digest("sha1"),
    "sha256": _digest("sha256"),
    "murmur3": murmurhash3_32,
    "fnv1a": fnv1a_32,
}

_ALIASES = {"sha1": "sha", "murmurhash3": "murmur3", "fnv": "fnv1a"}

# Hashes used when a caller does not pick its own
DEFAULT_HASH_FNS: Tuple[str, ...] = ("md5", "sha", "sha256")


def resolve_hash_name(name: str) -> str:
    """
    Validate a hash function name and return its canonical form.

    Args:
        name: A hash function name such as "md5" or "sha1".

    Returns:
        The canonical registry name ("sha1" becomes "sha").

    Raises:
        TypeError: If name is not a string.
        ValueError: If name is not a supported hash function.
    """
    if not isinstance(name, str):
        raise TypeError(
            f"Hash function must be given by name, got {type(name).__name__}"
        )
    key = name.lower()
    key = _ALIASES.get(key, key)
    if key not in HASH_FUNCTIONS:
        supported = ", ".join(sorted(HASH_FUNCTIONS))
        raise ValueError(f"Unsupported hash function {name!r} (expected one of: {supported})")
    return key


def resolve_hash_names(names: Iterable[str]) -> Tuple[str, ...]:
    """
    Validate an ordered list of hash function names.

    Raises:
        TypeError: If names is a bare string or contains a non-string.
        ValueError: If names is empty or contains an unsupported name.
    """
    if isinstance(names, (str, bytes)):
        raise TypeError("Hash functions must be a list of names, not a single string")
    resolved = tuple(resolve_hash_name(name) for name in names)
    if not resolved:
        raise ValueError("At least one hash function is required")
    return resolved


def hash_value(name: str, value: Any) -> int:
    """
    Hash a value with a named hash function.

    Args:
        name: Canonical hash function name (see resolve_hash_name).
        value: The value to hash; normalised with canonical_bytes.

    Returns:
        A non-negative integer.
    """
    return HASH_FUNCTIONS[name](canonical_bytes(value))


def compute_index(name: str, value: Any, bound: int) -> int:
    """Map a value to an index in [0, bound) using the named hash function."""
    return hash_value(name, value) % bound
