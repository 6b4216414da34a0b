"""
Algorithm implementations for Prolly.
"""

from prolly.algorithms.bloom import BloomFilter
from prolly.algorithms.countmin import CountMinSketch
from prolly.algorithms.hyperloglog import HyperLogLog

__all__ = [
    "BloomFilter",
    "CountMinSketch",
    "HyperLogLog",
]
