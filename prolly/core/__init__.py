"""
Core functionality for Prolly.
"""

from prolly.core.base import CardinalityEstimator, FrequencyEstimator, StreamSummary
from prolly.core.hash import (
    DEFAULT_HASH_FNS,
    HASH_FUNCTIONS,
    canonical_bytes,
    compute_index,
    fnv1a_32,
    hash_value,
    murmurhash3_32,
    resolve_hash_name,
    resolve_hash_names,
)

__all__ = [
    # Base classes
    "StreamSummary",
    "FrequencyEstimator",
    "CardinalityEstimator",
    # Hashing
    "HASH_FUNCTIONS",
    "DEFAULT_HASH_FNS",
    "canonical_bytes",
    "compute_index",
    "hash_value",
    "resolve_hash_name",
    "resolve_hash_names",
    "murmurhash3_32",
    "fnv1a_32",
]
