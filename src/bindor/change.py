"""Change results — the outcome of arbitrating an external write.

An onchange hook decides whether a caller's write goes through. It may
answer in several shapes:

- None or True: accept the proposed value as-is
- False: reject, keep the current value
- accept(v) / {"ok": True, "value": v}: accept, but store v instead
- reject() / {"ok": False}: reject

normalize() folds all of them into one of two tagged results, Accepted or
Rejected. Rejection is a value, not an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Generic, TypeVar

T = TypeVar("T")


class Accepted(Generic[T]):
    """The write went through. ``value`` is what was stored."""

    __slots__ = ("value",)

    ok = True

    def __init__(self, value: T) -> None:
        self.value = value

    def __bool__(self) -> bool:
        return True

    def __eq__(self, other) -> bool:
        return isinstance(other, Accepted) and other.value == self.value

    def __repr__(self) -> str:
        return f"Accepted({self.value!r})"


class Rejected:
    """The write was refused. The binding kept its value."""

    __slots__ = ()

    ok = False
    _instance: Rejected | None = None

    def __new__(cls) -> Rejected:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Rejected()"


REJECTED = Rejected()

Change = Accepted | Rejected


def accept(value: T) -> Accepted[T]:
    """Accept the write, substituting ``value`` for the proposed one."""
    return Accepted(value)


def reject() -> Rejected:
    return REJECTED


def normalize(result: object, proposed: T) -> Change:
    """Interpret an onchange return value against the proposed value.

    Raises TypeError for shapes that are none of the above. That is a
    broken hook, not a rejected write.
    """
    if result is None or result is True:
        return Accepted(proposed)
    if result is False:
        return REJECTED
    if isinstance(result, (Accepted, Rejected)):
        return result
    if isinstance(result, Mapping) and "ok" in result:
        if not result["ok"]:
            return REJECTED
        return Accepted(result.get("value", proposed))
    raise TypeError(
        f"onchange must return None, a bool, a Change or an ok-mapping; got {result!r}"
    )
