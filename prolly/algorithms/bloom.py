"""
Bloom Filter implementation for Prolly.

This module provides an implementation of the Bloom Filter, a space-efficient
probabilistic data structure used for testing set membership with tunable
false positive rates and no false negatives.

Each configured hash function picks one bit of the filter for a value. Adding
a value sets those bits; a value is possibly a member when all of them are
set. Bits are never cleared, so there is no deletion and no false negatives.

References:
    - Bloom, B. H. (1970). Space/time trade-offs in hash coding with allowable errors.
      Communications of the ACM, 13(7), 422-426.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, Iterable, List, Tuple, TypeVar

from prolly.core.base import StreamSummary, check_positive_int, round_half_up
from prolly.core.hash import DEFAULT_HASH_FNS, compute_index, resolve_hash_names

log = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed


def optimal_number_of_hashes(filter_size: int, input_size: int) -> int:
    """
    Find the optimal number of hash functions for a filter size and expected input size.

    k = (m / n) * ln(2), rounded to the nearest integer (halves up).

    Example:
        >>> optimal_number_of_hashes(10000, 1000)
        7
    """
    check_positive_int("filter_size", filter_size)
    check_positive_int("input_size", input_size)
    return round_half_up((filter_size / input_size) * math.log(2))


def false_positive_rate(filter_size: int, input_size: int, number_of_hashes: int) -> float:
    """
    Estimate the false positive rate of a filter.

    p = (1 - e^(-k * n / m))^k

    Example:
        >>> round(false_positive_rate(10000, 3000, 3), 2)
        0.21
    """
    check_positive_int("filter_size", filter_size)
    check_positive_int("input_size", input_size)
    check_positive_int("number_of_hashes", number_of_hashes)
    return math.pow(
        1 - math.exp(-number_of_hashes * input_size / filter_size), number_of_hashes
    )


def _optimal_bit_size(n: int, p: float) -> int:
    """m = -(n * ln(p)) / (ln(2)^2), rounded up."""
    return max(1, math.ceil(-(n * math.log(p)) / (math.log(2) ** 2)))


class BloomFilter(StreamSummary[T, bool]):
    """
    Bloom Filter for efficient set membership testing.

    A Bloom filter is a space-efficient probabilistic data structure used to test
    whether an element is a member of a set. False positives are possible, but
    false negatives are not. In other words, a query returns either "possibly in set"
    or "definitely not in set".

    Example:
        bloom = BloomFilter(20, ["sha", "md5", "sha256"])
        bloom = bloom.update("hi")

        bloom.possible_member("hi")               # True
        bloom.possible_member("this is not hi!")  # False
    """

    def __init__(self, size: int, hash_fns: Iterable[str] = DEFAULT_HASH_FNS):
        """
        Create an empty Bloom filter.

        Args:
            size: Number of bits in the filter (m). Fixed for the life of the filter.
            hash_fns: Ordered names of the hash functions to use (K >= 1).

        Raises:
            TypeError: If size is not an int or a hash name is not a string.
            ValueError: If size is not positive, hash_fns is empty or names an
                        unsupported hash function.
        """
        super().__init__()

        self._size = check_positive_int("size", size)
        self._hash_fns = resolve_hash_names(hash_fns)

        # Bits packed eight to a byte
        self._bytes = array.array("B", bytes((size + 7) // 8))

        log.debug("Created BloomFilter size=%d hash_fns=%s", size, self._hash_fns)

    @classmethod
    def create_from_error_rate(
        cls,
        expected_items: int,
        false_positive_rate: float,
        hash_fns: Iterable[str] = DEFAULT_HASH_FNS,
    ) -> "BloomFilter[T]":
        """
        Create a filter sized for a target false positive rate.

        Args:
            expected_items: Expected number of unique items to be added.
            false_positive_rate: Target false positive rate (between 0 and 1).
            hash_fns: Hash function names to use.

        Raises:
            ValueError: If expected_items is not positive or the rate is not in (0, 1).
        """
        check_positive_int("expected_items", expected_items)
        if not (0 < false_positive_rate < 1):
            raise ValueError("False positive rate must be between 0 and 1")

        return cls(_optimal_bit_size(expected_items, false_positive_rate), hash_fns)

    def _copy(self) -> "BloomFilter[T]":
        clone = super()._copy()
        clone._bytes = array.array("B", self._bytes)
        return clone

    def _positions(self, item: T) -> List[int]:
        return [compute_index(name, item, self._size) for name in self._hash_fns]

    def _set_bit(self, position: int) -> None:
        self._bytes[position >> 3] |= 1 << (position & 7)

    def _test_bit(self, position: int) -> bool:
        return bool(self._bytes[position >> 3] & (1 << (position & 7)))

    def update(self, item: T) -> "BloomFilter[T]":
        """
        Return a filter that also contains item.

        Sets one bit per hash function. Runs in time proportional to the
        number of hash functions.

        Args:
            item: The item to add to the filter.

        Returns:
            The updated filter.
        """
        result = self._advance()
        for position in self._positions(item):
            result._set_bit(position)
        return result

    def possible_member(self, item: T) -> bool:
        """
        Test if an item might be in the set.

        Args:
            item: The item to test.

        Returns:
            True if the item might be in the set, False if definitely not in the set.
        """
        return all(
            self._test_bit(compute_index(name, item, self._size))
            for name in self._hash_fns
        )

    def query(self, item: T, *args: Any, **kwargs: Any) -> bool:
        """Alias for possible_member()."""
        return self.possible_member(item)

    def __contains__(self, item: object) -> bool:
        return self.possible_member(item)

    def _state_key(self) -> Tuple[Any, ...]:
        return (self._size, self._hash_fns, self._bytes.tobytes())

    @property
    def size(self) -> int:
        """Number of bits in the filter (m)."""
        return self._size

    @property
    def hash_fns(self) -> Tuple[str, ...]:
        """Names of the configured hash functions."""
        return self._hash_fns

    @property
    def bits(self) -> List[int]:
        """The filter as a list of 0/1 values of length size."""
        return [int(self._test_bit(i)) for i in range(self._size)]

    def bits_set(self) -> int:
        """Count the bits currently set to 1."""
        return sum(bin(byte).count("1") for byte in self._bytes)

    def expected_false_positive_rate(self) -> float:
        """
        Theoretical false positive rate given the number of updates so far.

        Uses items_processed as the input size, which overestimates the rate
        when the same item was added more than once.
        """
        if self._items_processed == 0:
            return 0.0
        return false_positive_rate(
            self._size, self._items_processed, len(self._hash_fns)
        )

    def error_bounds(self) -> Dict[str, float]:
        bounds = super().error_bounds()
        bounds["false_positive_rate"] = self.expected_false_positive_rate()
        bounds["fill_ratio"] = self.bits_set() / self._size
        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update(
            {
                "size": self._size,
                "hash_fns": list(self._hash_fns),
                "bits_set": self.bits_set(),
                "optimal_hash_count": (
                    optimal_number_of_hashes(self._size, self._items_processed)
                    if self._items_processed
                    else None
                ),
            }
        )
        return stats

    def estimate_size(self) -> int:
        return super().estimate_size() + sys.getsizeof(self._bytes)

    def __repr__(self) -> str:
        return (
            f"BloomFilter(size={self._size}, hash_fns={list(self._hash_fns)!r}, "
            f"bits_set={self.bits_set()})"
        )
