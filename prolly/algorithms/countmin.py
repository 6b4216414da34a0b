"""
Count-Min Sketch implementation for Prolly.

This module provides the implementation of Count-Min Sketch, a probabilistic
data structure used for frequency estimation in data streams with bounded
memory usage.

The Count-Min Sketch provides the following guarantees:
1. Space Complexity: O(rows * columns)
2. Update Time: O(rows)
3. Query Time: O(rows)
4. Error Bound: With probability at least 1-delta, the overestimate is at most
   epsilon * N, where N is the sum of all counts, epsilon = e / columns and
   delta = e^(-rows).

Each row is addressed by its own hash function; the column of a value in row i
is hash_fns[i](value) modulo the number of columns.

References:
    - Cormode, G., & Muthukrishnan, S. (2005). An improved data stream summary:
      The count-min sketch and its applications. Journal of Algorithms, 55(1), 58-75.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, Iterable, List, Tuple, TypeVar

from prolly.core.base import FrequencyEstimator, check_positive_int
from prolly.core.hash import DEFAULT_HASH_FNS, compute_index, resolve_hash_names

log = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed

# Largest value a counter cell can hold
MAX_COUNTER = 2 ** (8 * array.array("L").itemsize) - 1


class CountMinSketch(FrequencyEstimator[T]):
    """
    Count-Min Sketch for frequency estimation in data streams.

    This implementation uses a rows x columns matrix of counters with one hash
    function per row. It never undercounts: the estimate is always greater than
    or equal to the true frequency.

    Example:
        sketch = CountMinSketch(3, 5, ["sha", "md5", "sha256"])
        sketch = sketch.update("hi").update("hi").update("hi")
        sketch.get_count("hi")  # 3
    """

    def __init__(
        self,
        rows: int,
        columns: int,
        hash_fns: Iterable[str] = DEFAULT_HASH_FNS,
    ):
        """
        Create an empty Count-Min Sketch.

        Args:
            rows: Number of rows (R). Must equal the number of hash functions.
            columns: Number of counters per row (C), kept as the sketch depth.
            hash_fns: Ordered hash function names, one per row.

        Raises:
            TypeError: If rows or columns is not an int, or a hash name is not a string.
            ValueError: If rows or columns is not positive, a hash name is unsupported,
                        or the number of hash functions differs from rows.
        """
        super().__init__()

        check_positive_int("rows", rows)
        self._depth = check_positive_int("columns", columns)
        self._hash_fns = resolve_hash_names(hash_fns)

        if len(self._hash_fns) != rows:
            raise ValueError(
                f"Count-Min Sketch with {rows} rows needs exactly {rows} hash functions, "
                f"got {len(self._hash_fns)}"
            )

        # Unsigned counters, one array per row
        self._counters = [array.array("L", [0] * columns) for _ in range(rows)]
        self._total_count = 0

        # epsilon: with probability 1-delta, errors are below epsilon * total_count
        self._epsilon = math.e / columns
        self._delta = math.exp(-rows)

        log.debug(
            "Created CountMinSketch rows=%d columns=%d hash_fns=%s",
            rows,
            columns,
            self._hash_fns,
        )

    def _copy(self) -> "CountMinSketch[T]":
        clone = super()._copy()
        clone._counters = [array.array("L", row) for row in self._counters]
        return clone

    def _columns(self, item: T) -> List[int]:
        return [compute_index(name, item, self._depth) for name in self._hash_fns]

    def update(self, item: T, count: int = 1) -> "CountMinSketch[T]":
        """
        Return a sketch with item counted count more times.

        Increments one counter in every row.

        Args:
            item: The item to add to the sketch.
            count: How many occurrences to add (default is 1).

        Returns:
            The updated sketch.

        Raises:
            TypeError: If count is not an int.
            ValueError: If count is negative or a counter would exceed MAX_COUNTER.
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError(f"Count must be an integer, got {type(count).__name__}")
        if count < 0:
            raise ValueError("Count must be non-negative")

        if count == 0:
            return self._copy()

        columns = self._columns(item)
        for row, column in enumerate(columns):
            if self._counters[row][column] + count > MAX_COUNTER:
                raise ValueError(
                    f"Count {count} would overflow a counter (max {MAX_COUNTER})"
                )

        result = self._advance()
        for row, column in enumerate(columns):
            result._counters[row][column] += count
        result._total_count = self._total_count + count
        return result

    def get_count(self, item: T) -> int:
        """
        Query the sketch for the count of an item.

        Reads the item's counter in every row and returns the minimum.
        Collisions can only inflate a row, so the minimum is the tightest
        available upper bound.

        Args:
            item: The item to look up.

        Returns:
            The estimated count, never less than the true count.
        """
        return min(
            self._counters[row][column]
            for row, column in enumerate(self._columns(item))
        )

    def estimate_frequency(self, item: T) -> int:
        """Alias for get_count()."""
        return self.get_count(item)

    def query(self, item: T) -> int:
        """Alias for get_count()."""
        return self.get_count(item)

    def estimate_frequency_error(self, item: T) -> Tuple[int, float]:
        """
        Estimate frequency with error bounds for an item.

        Returns:
            A tuple of (estimated_count, max_error) where max_error is
            the maximum expected overestimation (epsilon * total_count).
        """
        return (self.get_count(item), self._epsilon * self._total_count)

    def union(self, other: "CountMinSketch[T]") -> "CountMinSketch[T]":
        """
        Union two sketches by cell-wise adding their counts.

        Both sketches must have the same shape and hash functions. The result
        keeps this sketch's hash functions. Counters are bounded by MAX_COUNTER
        (2**64 - 1 where a C unsigned long is 64 bits).

        Args:
            other: Another Count-Min Sketch built with the same configuration.

        Returns:
            A new sketch whose counters are the sum of both.

        Raises:
            TypeError: If other is not a CountMinSketch.
            ValueError: If the sketches have different dimensions or hash functions,
                        or a summed counter would exceed MAX_COUNTER.
        """
        self._check_same_type(other)

        if self.shape != other.shape:
            raise ValueError(
                f"Cannot union sketches with different dimensions: "
                f"{self.rows}x{self._depth} and {other.rows}x{other._depth}"
            )
        if self._hash_fns != other._hash_fns:
            raise ValueError(
                f"Cannot union sketches with different hash functions: "
                f"{list(self._hash_fns)} and {list(other._hash_fns)}"
            )

        result = self._copy()
        for mine, theirs in zip(result._counters, other._counters):
            for j in range(self._depth):
                total = mine[j] + theirs[j]
                if total > MAX_COUNTER:
                    raise ValueError(
                        f"Union would overflow a counter (max {MAX_COUNTER})"
                    )
                mine[j] = total

        result._total_count = self._total_count + other._total_count
        result._items_processed = self._items_processed + other._items_processed
        return result

    def __or__(self, other: "CountMinSketch[T]") -> "CountMinSketch[T]":
        return self.union(other)

    def _state_key(self) -> Tuple[Any, ...]:
        return (
            self._depth,
            self._hash_fns,
            tuple(row.tobytes() for row in self._counters),
        )

    @property
    def rows(self) -> int:
        """Number of rows (one per hash function)."""
        return len(self._counters)

    @property
    def depth(self) -> int:
        """Number of columns per row."""
        return self._depth

    @property
    def shape(self) -> Tuple[int, int]:
        """(rows, columns)."""
        return (len(self._counters), self._depth)

    @property
    def hash_fns(self) -> Tuple[str, ...]:
        """Names of the hash functions, in row order."""
        return self._hash_fns

    @property
    def matrix(self) -> List[List[int]]:
        """A copy of the counter matrix as nested lists."""
        return [list(row) for row in self._counters]

    @property
    def total_count(self) -> int:
        """Sum of all counts added to the sketch."""
        return self._total_count

    def error_bounds(self) -> Dict[str, float]:
        """
        Calculate the theoretical error bounds for this sketch.

        Returns:
            A dictionary with the error bounds:
            - epsilon: The error factor (errors are less than epsilon * total_count)
            - delta: The probability of exceeding the error bound
            - max_absolute_error: epsilon * total_count
            - observed_saturation: The proportion of counters that are non-zero
        """
        bounds = super().error_bounds()
        non_zero = sum(1 for row in self._counters for value in row if value)
        bounds.update(
            {
                "epsilon": self._epsilon,
                "delta": self._delta,
                "max_absolute_error": self._epsilon * self._total_count,
                "observed_saturation": non_zero / (self.rows * self._depth),
            }
        )
        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update(
            {
                "rows": self.rows,
                "columns": self._depth,
                "hash_fns": list(self._hash_fns),
                "total_count": self._total_count,
            }
        )
        return stats

    def estimate_size(self) -> int:
        size = super().estimate_size() + sys.getsizeof(self._counters)
        for row in self._counters:
            size += sys.getsizeof(row)
        return size

    def __repr__(self) -> str:
        return (
            f"CountMinSketch(rows={self.rows}, columns={self._depth}, "
            f"hash_fns={list(self._hash_fns)!r}, total_count={self._total_count})"
        )
