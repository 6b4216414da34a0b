"""
Base classes and interfaces for Prolly sketches.

This module defines the abstract base classes that all sketches implement to
provide a consistent interface across the library.

Sketches are value types: update() never mutates the receiver. It clones the
backing storage, applies the change to the clone and returns it, so any
reference to a previous version stays valid.
"""

import abc
import copy
import math
import sys
from typing import Any, Dict, Generic, Tuple, TypeVar

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries
S = TypeVar("S", bound="StreamSummary")


def check_positive_int(name: str, value: Any) -> int:
    """
    Validate a size parameter.

    Raises:
        TypeError: If value is not an int (bools are rejected).
        ValueError: If value is not positive.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


def round_half_up(value: float) -> int:
    """Round to the nearest int with halves going up (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


class StreamSummary(Generic[T, R], abc.ABC):
    """
    Abstract base class for all sketches.

    Subclasses implement update() and query(), and describe their state
    through _state_key() so that equal sketches compare equal.
    """

    def __init__(self) -> None:
        self._items_processed = 0

    @abc.abstractmethod
    def update(self: S, item: T) -> S:
        """
        Return a new summary that also reflects item.

        Args:
            item: The new item to process.

        Returns:
            The updated summary. The receiver is left unchanged.
        """

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """
        Query the current state of the summary.

        The parameters and return value depend on the specific algorithm.
        """

    @abc.abstractmethod
    def _state_key(self) -> Tuple[Any, ...]:
        """Configuration and contents that define this value."""

    def _copy(self: S) -> S:
        """
        Shallow copy used as the starting point of every update.

        Subclasses must override this to clone their mutable storage while
        calling super()._copy().
        """
        return copy.copy(self)

    def _advance(self: S) -> S:
        """Copy the summary and count one more processed item on the copy."""
        clone = self._copy()
        clone._items_processed = self._items_processed + 1
        return clone

    def _check_same_type(self, other: "StreamSummary[T, R]") -> None:
        """
        Helper method to check if another summary is of the same type.

        Raises:
            TypeError: If other is not of the same type.
        """
        if not isinstance(other, self.__class__):
            raise TypeError(
                f"Cannot combine {self.__class__.__name__} with {other.__class__.__name__}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StreamSummary) or type(other) is not type(self):
            return NotImplemented
        return self._state_key() == other._state_key()

    __hash__ = None

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this summary in bytes.

        Derived classes should override this method to add their internal
        data structures.

        Returns:
            Estimated memory usage in bytes.
        """
        size = sys.getsizeof(self)
        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)
        return size

    def error_bounds(self) -> Dict[str, float]:
        """
        Get the theoretical error bounds for this summary.

        The base implementation returns an empty dictionary.
        """
        return {}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the current state of the summary.

        Derived classes extend this with their own parameters.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }
        stats.update(self.error_bounds())
        return stats

    @property
    def items_processed(self) -> int:
        """Number of updates that led to this value."""
        return self._items_processed


class FrequencyEstimator(StreamSummary[T, int], abc.ABC):
    """
    Abstract base class for frequency estimation algorithms.

    Examples include Count-Min Sketch and variants.
    """

    @abc.abstractmethod
    def estimate_frequency(self, item: T) -> int:
        """
        Estimate the frequency of an item in the stream.

        Args:
            item: The item to estimate the frequency for.

        Returns:
            The estimated frequency of the item.
        """


class CardinalityEstimator(StreamSummary[T, int], abc.ABC):
    """
    Abstract base class for cardinality estimation algorithms.

    Examples include HyperLogLog and variants.
    """

    @abc.abstractmethod
    def estimate_cardinality(self) -> int:
        """
        Estimate the number of unique items in the stream.

        Returns:
            The estimated cardinality.
        """

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats["estimated_cardinality"] = self.estimate_cardinality()
        return stats
