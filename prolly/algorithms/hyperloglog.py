"""
HyperLogLog implementation for Prolly.

HyperLogLog estimates the number of distinct values in a stream using M small
registers. Each value is hashed; the low b = log2(M) bits of the hash pick a
register, and the register keeps the longest run of zero bits seen just above
those index bits (plus one). The estimate is a bias-corrected harmonic mean of
the registers, with separate corrections for small and very large cardinalities.

Registers that are still zero are left out of the harmonic sum and only
matter through the empty-register count used by linear counting.

References:
    - Flajolet, P., Fusy, E., Gandouet, O., & Meunier, F. (2007).
      HyperLogLog: the analysis of a near-optimal cardinality estimation algorithm.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, List, Tuple, TypeVar, Union

from prolly.core.base import CardinalityEstimator, check_positive_int, round_half_up
from prolly.core.hash import hash_value, resolve_hash_name

log = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed

# Hash used when none is given
DEFAULT_HASH_FN = "murmur3"

# Fixed alpha values for small register counts
_ALPHA = {16: 0.673, 32: 0.697, 64: 0.709}

# Regime boundaries for the large range correction
_TWO_POW_32 = float(2**32)
_LARGE_RANGE_THRESHOLD = _TWO_POW_32 / 30


def compute_alpha(m: int) -> float:
    """Bias-correction constant for m registers."""
    if m in _ALPHA:
        return _ALPHA[m]
    return 0.7213 / (1 + 1.079 / m)


def _run_length(value_bits: int) -> int:
    """
    Count the zero bits of value_bits, starting at its least significant bit.

    These are the hash bits just above the register index, scanned from the
    index boundary towards the most significant bit. With no value bits left
    the run is empty.
    """
    if value_bits == 0:
        return 0
    return (value_bits & -value_bits).bit_length() - 1


class HyperLogLog(CardinalityEstimator[T]):
    """
    HyperLogLog for cardinality estimation in data streams.

    The number of registers (m) determines both accuracy and memory usage:
    the standard error is roughly 1.04/sqrt(m).

    Example:
        hll = HyperLogLog(64)
        for i in range(1, 5801):
            hll = hll.update(i)
        hll.count()  # close to 5800
    """

    _MIN_REGISTERS = 16

    def __init__(self, m: int, hash_fn: str = DEFAULT_HASH_FN):
        """
        Create an empty HyperLogLog.

        Args:
            m: Number of registers. Must be a power of two and at least 16.
            hash_fn: Name of the hash function applied to every value.

        Raises:
            TypeError: If m is not an int or hash_fn is not a string.
            ValueError: If m is not a power of two, is below 16, or hash_fn
                        is unsupported.
        """
        super().__init__()

        check_positive_int("m", m)
        if m & (m - 1):
            raise ValueError(f"Number of registers must be a power of two, got {m}")
        if m < self._MIN_REGISTERS:
            raise ValueError(
                f"Number of registers must be at least {self._MIN_REGISTERS}, got {m}"
            )

        self._m = m
        self._hash_fn = resolve_hash_name(hash_fn)
        # Number of low-order hash bits that select a register
        self._b = m.bit_length() - 1
        self._index_mask = m - 1
        self._alpha = compute_alpha(m)
        self._alpha_m_squared = self._alpha * m * m

        # Run lengths fit in a byte for hashes up to 256 bits
        self._registers = array.array("B", bytes(m))

        log.debug("Created HyperLogLog m=%d hash_fn=%s", m, self._hash_fn)

    @classmethod
    def create_from_error_rate(
        cls, relative_error: float, hash_fn: str = DEFAULT_HASH_FN
    ) -> "HyperLogLog[T]":
        """
        Create a HyperLogLog with the desired standard error.

        Args:
            relative_error: The target relative (standard) error, e.g. 0.01 for 1%.
            hash_fn: Name of the hash function.

        Raises:
            ValueError: If relative_error is not between 0 and 1.
        """
        if not (0 < relative_error < 1):
            raise ValueError("Relative error must be between 0 and 1")

        # Standard error = 1.04/sqrt(m), so m = (1.04/error)^2 rounded up to a power of two
        precision = math.ceil(math.log2((1.04 / relative_error) ** 2))
        m = max(cls._MIN_REGISTERS, 1 << precision)
        return cls(m, hash_fn)

    def _copy(self) -> "HyperLogLog[T]":
        clone = super()._copy()
        clone._registers = array.array("B", self._registers)
        return clone

    def update(self, item: T) -> "HyperLogLog[T]":
        """
        Return an estimator that has also observed item.

        This method:
        1. Hashes the item
        2. Uses the last b bits of the hash to pick a register
        3. Counts the zero bits just above the index bits, plus one
        4. Keeps the maximum of that and the register's current value

        Args:
            item: The item to add to the estimator.

        Returns:
            The updated estimator.
        """
        hashed = hash_value(self._hash_fn, item)
        index = hashed & self._index_mask
        rank = _run_length(hashed >> self._b) + 1

        result = self._advance()
        if rank > self._registers[index]:
            result._registers[index] = rank
        return result

    def _raw_estimate(self) -> float:
        harmonic_sum = sum(math.ldexp(1.0, -r) for r in self._registers if r > 0)
        if harmonic_sum == 0:
            return 0.0
        return self._alpha_m_squared / harmonic_sum

    def _correct(self, estimate: float) -> float:
        if estimate < 5 * self._m / 2:
            # Small range: linear counting when some registers are still empty
            empty = self._registers.count(0)
            if empty == 0:
                return estimate
            return self._m * math.log(self._m / empty)

        if estimate <= _LARGE_RANGE_THRESHOLD:
            return estimate

        # Large range: undefined once the estimate reaches 2^32
        if estimate >= _TWO_POW_32:
            return estimate
        return -_TWO_POW_32 * math.log(1 - estimate / _TWO_POW_32)

    def count(self) -> int:
        """
        Estimate the number of distinct items observed.

        Returns:
            The estimate rounded to the nearest integer, halves rounding up.
        """
        return round_half_up(self._correct(self._raw_estimate()))

    def estimate_cardinality(self) -> int:
        """Alias for count()."""
        return self.count()

    def query(self, *args: Any, **kwargs: Any) -> int:
        """Alias for count()."""
        return self.count()

    def _state_key(self) -> Tuple[Any, ...]:
        return (self._m, self._hash_fn, self._registers.tobytes())

    @property
    def m(self) -> int:
        """Number of registers."""
        return self._m

    @property
    def b(self) -> int:
        """Number of hash bits used to select a register (log2(m))."""
        return self._b

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def alpha_m_squared(self) -> float:
        return self._alpha_m_squared

    @property
    def hash_fn(self) -> str:
        return self._hash_fn

    @property
    def registers(self) -> List[int]:
        """A copy of the register values."""
        return list(self._registers)

    def error_bounds(self) -> Dict[str, Union[str, float]]:
        """
        Calculate the theoretical error bounds for this estimator.

        Returns:
            A dictionary with the error bounds:
            - relative_error: The standard error (approximately 1.04/sqrt(m))
            - confidence_68pct: Error range for 68% confidence (1 sigma)
            - confidence_95pct: Error range for 95% confidence (2 sigma)
            - confidence_99pct: Error range for 99% confidence (3 sigma)
        """
        bounds = super().error_bounds()
        std_error = 1.04 / math.sqrt(self._m)
        bounds.update(
            {
                "relative_error": std_error,
                "confidence_68pct": std_error,
                "confidence_95pct": std_error * 1.96,
                "confidence_99pct": std_error * 2.58,
            }
        )
        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        empty = self._registers.count(0)
        stats.update(
            {
                "num_registers": self._m,
                "index_bits": self._b,
                "alpha_value": self._alpha,
                "hash_fn": self._hash_fn,
                "empty_registers": empty,
                "empty_registers_pct": empty / self._m * 100,
                "max_register_value": max(self._registers),
            }
        )
        return stats

    def estimate_size(self) -> int:
        return super().estimate_size() + sys.getsizeof(self._registers)

    def __repr__(self) -> str:
        return f"HyperLogLog(m={self._m}, hash_fn={self._hash_fn!r})"
