"""bindor: reactive value bindings with validated writes and watchers."""

from importlib.metadata import version as _version

__version__ = _version("bindor")

from bindor.change import Accepted, Change, Rejected, REJECTED, accept, normalize, reject
from bindor.binding import Binding, ReadonlyBinding, Subscription, bindor, set_scheduler
from bindor.source import ThreadedSource, threaded, timer
# textual NOT auto-imported — opt-in only

__all__ = [
    "bindor",
    "Binding",
    "ReadonlyBinding",
    "Subscription",
    "set_scheduler",
    "Change",
    "Accepted",
    "Rejected",
    "REJECTED",
    "accept",
    "reject",
    "normalize",
    "ThreadedSource",
    "threaded",
    "timer",
]
