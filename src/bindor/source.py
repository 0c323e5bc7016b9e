"""threaded() — owning sources that run in a managed daemon thread.

A ThreadedSource is a ready-made ``register`` argument. When the binding
registers it, the source function starts in a daemon thread and receives
the internal setter. Combine with set_scheduler() so writes from the thread
land on the main thread.

Usage:
    def poll(setter, source):
        while not source.wait(2.0):
            setter(read_temperature())

    temperature = bindor(threaded(poll), init=0.0)
    ...
    temperature_source.dispose()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("bindor.source")

SourceFn = Callable[[Callable[[Any], None], "ThreadedSource"], None]


class ThreadedSource:
    """A register function backed by a daemon thread. One binding per source."""

    __slots__ = ("_fn", "_stop", "_thread", "_name")

    def __init__(self, fn: SourceFn, *, name: str | None = None) -> None:
        self._fn = fn
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._name = name or getattr(fn, "__name__", "source")

    @property
    def disposed(self) -> bool:
        return self._stop.is_set()

    @property
    def started(self) -> bool:
        return self._thread is not None

    def dispose(self) -> None:
        """Signal the thread to stop. Check .disposed (or wait()) in your loop."""
        self._stop.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Sleep up to timeout seconds. Returns True as soon as disposed."""
        return self._stop.wait(timeout)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def __call__(self, setter: Callable[[Any], None]) -> None:
        if self._thread is not None:
            raise RuntimeError(f"source {self._name!r} is already registered with a binding")
        self._thread = threading.Thread(
            target=self._run, args=(setter,), name=f"bindor-{self._name}", daemon=True
        )
        self._thread.start()

    def _run(self, setter: Callable[[Any], None]) -> None:
        try:
            self._fn(setter, self)
        except Exception:
            # The binding keeps its last value; nothing else to unwind.
            logger.exception("Source %r failed", self._name)

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else ("running" if self.started else "idle")
        return f"ThreadedSource({self._name}, {state})"


def threaded(fn: SourceFn, *, name: str | None = None) -> ThreadedSource:
    """Wrap fn(setter, source) as a register function run in a daemon thread."""
    return ThreadedSource(fn, name=name)


def timer(delay: float, value: Any) -> ThreadedSource:
    """Push value once, delay seconds after registration, unless disposed first.

    Usage:
        b = bindor(timer(2.0, 10), init=10, value=0, onchange=print)
        # b() == 0 now, 10 two seconds later
    """

    def _fire(setter, source: ThreadedSource) -> None:
        if not source.wait(delay):
            setter(value)
        else:
            logger.debug("Timer disposed before firing")

    return ThreadedSource(_fire, name="timer")
