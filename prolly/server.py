"""
Serialising owner for a single sketch.

Sketches are immutable values, so sharing one between threads needs an owner
that holds the current value and applies requests to it one at a time.
SketchServer runs every request on a single worker thread in the order the
requests were submitted:

    Caller threads: submit get_state / update / query requests
    Worker thread:  runs each request against the current sketch, replaces
                    the sketch after an update, and hands back the reply

A caller that waits for its update before querying always sees its own write.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from prolly.algorithms.countmin import CountMinSketch
from prolly.core.base import StreamSummary
from prolly.core.hash import DEFAULT_HASH_FNS

log = logging.getLogger(__name__)

S = TypeVar("S", bound=StreamSummary)
V = TypeVar("V")


class SketchServer(Generic[S]):
    """Owns one sketch and serialises all access to it.

    Args:
        sketch: The initial sketch value.
        name: Label used for the worker thread and in log messages.
    """

    def __init__(self, sketch: S, name: Optional[str] = None) -> None:
        if not isinstance(sketch, StreamSummary):
            raise TypeError(f"Expected a sketch, got {type(sketch).__name__}")
        self._state = sketch
        self._name = name or type(sketch).__name__
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"prolly-{self._name}"
        )
        log.debug("Started %s server", self._name)

    def _submit(self, fn: Callable[[], V]) -> V:
        executor = self._executor
        if executor is None:
            raise RuntimeError(f"{self._name} server is stopped")
        return executor.submit(fn).result()

    def call(self, fn: Callable[[S], V]) -> V:
        """Run fn against the current sketch on the worker thread and return its result.

        fn must not call back into this server; the worker would wait on itself.
        """
        return self._submit(lambda: fn(self._state))

    def get_state(self) -> S:
        """Return the current sketch value."""
        return self._submit(lambda: self._state)

    def update(self, value: Any, *args: Any, **kwargs: Any) -> None:
        """Apply sketch.update(value) and keep the result as the current value.

        If the sketch raises, the current value is left as it was and the
        exception is re-raised in the caller.
        """

        def apply() -> None:
            try:
                self._state = self._state.update(value, *args, **kwargs)
            except Exception:
                log.warning("%s server rejected update with %r", self._name, value)
                raise

        self._submit(apply)

    def query(self, *args: Any, **kwargs: Any) -> Any:
        """Answer sketch.query(*args, **kwargs) against the current value."""
        return self._submit(lambda: self._state.query(*args, **kwargs))

    def stop(self) -> None:
        """Finish pending requests and shut the worker down. Idempotent."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            log.debug("Stopped %s server", self._name)

    @property
    def running(self) -> bool:
        return self._executor is not None

    def __enter__(self) -> "SketchServer[S]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()


def start_count_min_sketch_server(
    rows: int,
    columns: int,
    hash_fns: Iterable[str] = DEFAULT_HASH_FNS,
) -> "SketchServer[CountMinSketch[Any]]":
    """Create a server owning an empty CountMinSketch.

    Construction errors from the sketch are raised here, before any thread
    is started.
    """
    return SketchServer(CountMinSketch(rows, columns, hash_fns), name="CountMinSketch")
