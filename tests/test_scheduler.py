"""Tests for set_scheduler() — auto-marshaled internal writes."""

import threading

import bindor.binding as _binding_mod
from bindor import bindor, set_scheduler


class _Capture:
    def __init__(self):
        self.setter = None

    def __call__(self, setter):
        self.setter = setter


def _swap_scheduler(scheduler, thread):
    old = _binding_mod._scheduler, _binding_mod._scheduler_thread
    _binding_mod._scheduler = scheduler
    _binding_mod._scheduler_thread = thread
    return old


def _restore(old):
    _binding_mod._scheduler, _binding_mod._scheduler_thread = old


class TestAutoMarshal:
    def test_scheduler_thread_is_synchronous(self):
        calls = []
        old = _swap_scheduler(lambda f: (calls.append(f), f()), threading.current_thread())
        try:
            reg = _Capture()
            b = bindor(reg, init=0)
            reg.setter(42)
            assert b() == 42
            assert calls == []
        finally:
            _restore(old)

    def test_background_thread_marshals(self):
        calls = []
        old = _swap_scheduler(lambda f: (calls.append(f), f()), threading.current_thread())
        try:
            reg = _Capture()
            b = bindor(reg, init=0)
            log = []
            b.watch(log.append)

            t = threading.Thread(target=lambda: reg.setter(99))
            t.start()
            t.join(timeout=2)

            assert len(calls) == 1
            assert b() == 99
            assert log == [0, 99]
        finally:
            _restore(old)

    def test_deferred_scheduler_holds_write(self):
        queue = []
        old = _swap_scheduler(queue.append, threading.current_thread())
        try:
            reg = _Capture()
            b = bindor(reg, init=0)

            returned = []
            t = threading.Thread(target=lambda: returned.append(reg.setter(5)))
            t.start()
            t.join(timeout=2)

            assert returned == [None]
            assert b() == 0
            queue.pop()()
            assert b() == 5
        finally:
            _restore(old)

    def test_no_scheduler_is_direct(self):
        old = _swap_scheduler(None, None)
        try:
            reg = _Capture()
            b = bindor(reg, init=0)
            t = threading.Thread(target=lambda: reg.setter(7))
            t.start()
            t.join(timeout=2)
            assert b() == 7
        finally:
            _restore(old)

    def test_external_writes_are_not_marshaled(self):
        calls = []
        old = _swap_scheduler(lambda f: (calls.append(f), f()), threading.main_thread())
        try:
            b = bindor(lambda s: None, init=0, onchange=lambda v: None)
            done = threading.Event()

            def bg():
                b(3)
                done.set()

            threading.Thread(target=bg).start()
            done.wait(timeout=2)
            assert b() == 3
            assert calls == []
        finally:
            _restore(old)


class TestSetScheduler:
    def test_records_calling_thread(self):
        old = _swap_scheduler(None, None)
        try:
            sched = lambda f: f()  # noqa: E731
            set_scheduler(sched)
            assert _binding_mod._scheduler is sched
            assert _binding_mod._scheduler_thread is threading.current_thread()
        finally:
            _restore(old)

    def test_none_clears(self):
        old = _swap_scheduler(None, None)
        try:
            set_scheduler(lambda f: f())
            set_scheduler(None)
            assert _binding_mod._scheduler is None
            assert _binding_mod._scheduler_thread is None
        finally:
            _restore(old)
