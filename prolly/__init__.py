"""
Prolly - Probabilistic Data Structures

Prolly is a Python library of approximate, sublinear-memory summaries of data
streams: a Bloom filter for set membership, a Count-Min Sketch for frequency
counting and HyperLogLog for distinct counting. All sketches are immutable
values; update() returns a new sketch.
"""

__version__ = "0.1.0"

from prolly.algorithms.bloom import (
    BloomFilter,
    false_positive_rate,
    optimal_number_of_hashes,
)
from prolly.algorithms.countmin import CountMinSketch
from prolly.algorithms.hyperloglog import HyperLogLog
from prolly.core.base import CardinalityEstimator, FrequencyEstimator, StreamSummary
from prolly.server import SketchServer, start_count_min_sketch_server

__all__ = [
    # Core base classes
    "StreamSummary",
    "FrequencyEstimator",
    "CardinalityEstimator",
    # Algorithm implementations
    "BloomFilter",
    "CountMinSketch",
    "HyperLogLog",
    # Advisory functions
    "optimal_number_of_hashes",
    "false_positive_rate",
    # Serialising owner
    "SketchServer",
    "start_count_min_sketch_server",
]
