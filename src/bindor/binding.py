"""Bindings — a value shared between an owning source and local callers.

A binding has two ways in:

- the internal setter, handed once to ``register`` at construction. The
  owning source (a device callback, a timer, a store subscription) pushes
  authoritative values through it. They are never validated.
- external writes, made by calling the binding or assigning ``.value``.
  These go through ``onchange``, which may accept, reject or substitute.

A binding built without ``onchange`` is read-only: callers can read and
watch it, and only the owner can change it.

Every accepted assignment notifies all watchers synchronously, exactly
once, before the triggering call returns.

Thread safety: call set_scheduler() once from the main thread. After that,
an internal setter invoked from a background thread is marshaled through
the scheduler. Everything else is meant to run on a single thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Generic, TypeVar, overload

from bindor.change import Change, normalize

T = TypeVar("T")

Watcher = Callable[[T], None]
Setter = Callable[[T], "T | None"]

logger = logging.getLogger("bindor.binding")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global scheduler for internal writes from other threads.

    Call once from the main/UI thread:
        bindor.set_scheduler(app.call_from_thread)

    After this, an internal setter called from a background thread hands its
    write to the scheduler. Calls on the main thread stay synchronous.
    Pass None to go back to direct writes everywhere.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


class Subscription(Generic[T]):
    """Handle for one watcher. ``dispose()`` stops further deliveries."""

    __slots__ = ("_binding", "_observer", "_active")

    def __init__(self, binding: ReadonlyBinding[T], observer: Watcher) -> None:
        self._binding = binding
        self._observer = observer
        self._active = True

    @property
    def observer(self) -> Watcher:
        return self._observer

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        self._binding.unwatch(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "disposed"
        return f"Subscription({self._observer!r}, {state})"


class ReadonlyBinding(Generic[T]):
    """A binding only its owner can change."""

    __slots__ = ("_value", "_init", "_meta", "_subscriptions", "__weakref__")

    writable = False

    def __init__(
        self,
        register: Callable[[Setter], Any],
        init: T,
        *,
        value: T | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        self._init = init
        self._value = init if value is None else value
        self._meta = MappingProxyType(dict(meta) if meta else {})
        self._subscriptions: dict[Watcher, Subscription[T]] = {}
        register(self._internal_set)

    # --- Reading ---

    def __call__(self) -> T:
        return self._value

    def read(self) -> T:
        return self._value

    @property
    def value(self) -> T:
        return self._value

    @property
    def init(self) -> T:
        return self._init

    @property
    def meta(self) -> Mapping[str, Any]:
        return self._meta

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: metadata keys read as attributes.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._meta[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute or meta key {name!r}"
            ) from None

    # --- Watchers ---

    def watch(self, observer: Watcher) -> Subscription[T]:
        """Call observer with the current value now, and on every accepted change.

        Watching the same callable twice keeps one registration; it still
        gets the immediate call, and the existing Subscription is returned.
        Observers are keyed by equality, so an unhashable callable raises
        TypeError before it receives anything.
        """
        existing = self._subscriptions.get(observer)
        observer(self._value)
        if existing is not None:
            return existing
        subscription = Subscription(self, observer)
        self._subscriptions[observer] = subscription
        return subscription

    def unwatch(self, target: Watcher | Subscription[T]) -> bool:
        """Stop notifying a watcher. Returns False if it was not watching."""
        if isinstance(target, Subscription):
            if self._subscriptions.get(target._observer) is not target:
                return False
            target = target._observer
        subscription = self._subscriptions.pop(target, None)
        if subscription is None:
            return False
        subscription._active = False
        return True

    @property
    def watcher_count(self) -> int:
        return len(self._subscriptions)

    # --- Writing ---

    def _internal_set(self, value: T) -> T | None:
        """The setter handed to register. Returns the new value.

        Auto-marshals from background threads. A marshaled write has not
        happened yet when the setter returns, so it returns None.
        """
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            logger.debug("Marshaling internal write of %r to scheduler thread", value)
            _scheduler(lambda v=value: self._assign(v))
            return None
        return self._assign(value)

    def _assign(self, value: T | None) -> T:
        self._value = self._init if value is None else value
        self._notify(self._value)
        return self._value

    def _notify(self, value: T) -> None:
        # Snapshot: watchers may unwatch (themselves or others) mid fan-out.
        for subscription in list(self._subscriptions.values()):
            if subscription._active:
                subscription._observer(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class Binding(ReadonlyBinding[T]):
    """A binding callers may write, subject to its onchange hook."""

    __slots__ = ("_onchange",)

    writable = True

    def __init__(
        self,
        register: Callable[[Setter], Any],
        init: T,
        onchange: Callable[[T], object],
        *,
        value: T | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        self._onchange = onchange
        super().__init__(register, init, value=value, meta=meta)

    def __call__(self, value: T | None = None) -> T:
        """Read, or write then read.

        None cannot be written this way: binding(None) is the same as
        binding(). Use write(None) to propose the init value.
        """
        if value is not None:
            self.write(value)
        return self._value

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self(value)

    def write(self, value: T | None) -> Change:
        """Offer a value to onchange. Returns Accepted(stored) or Rejected.

        None proposes the init value.
        """
        proposed = self._init if value is None else value
        change = normalize(self._onchange(proposed), proposed)
        if not change:
            logger.debug("Rejected write of %r, keeping %r", proposed, self._value)
            return change
        self._assign(change.value)
        return change

    def reset(self) -> None:
        """Restore init and notify. Bypasses onchange."""
        logger.debug("Reset to %r", self._init)
        self._assign(self._init)


@overload
def bindor(
    register: Callable[[Setter], Any],
    init: T,
    *,
    value: T | None = ...,
    meta: Mapping[str, Any] | None = ...,
    onchange: None = ...,
) -> ReadonlyBinding[T]: ...


@overload
def bindor(
    register: Callable[[Setter], Any],
    init: T,
    *,
    value: T | None = ...,
    meta: Mapping[str, Any] | None = ...,
    onchange: Callable[[T], object],
) -> Binding[T]: ...


def bindor(register, init, *, value=None, meta=None, onchange=None):
    """Create a binding. Writable iff onchange is given.

    register is called exactly once, right here, with the internal setter.

    Usage:
        setters = []
        volume = bindor(
            setters.append,
            init=50,
            onchange=lambda v: 0 <= v <= 100,
            meta={"label": "Volume"},
        )

        volume(80)          # 80, accepted
        volume(150)         # 80, rejected by onchange
        setters[0](150)     # owner writes bypass onchange
        volume.reset()      # back to 50
        volume.label        # "Volume"
    """
    if onchange is None:
        return ReadonlyBinding(register, init, value=value, meta=meta)
    return Binding(register, init, onchange, value=value, meta=meta)
