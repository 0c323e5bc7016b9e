"""Textual integration for bindor. Opt-in — requires textual.

bind() ties a binding to a reactive attribute of a widget, both ways:

- binding -> widget: every accepted value is pushed into the attribute.
- widget -> binding: user edits go through binding.write(). A rejected
  edit snaps the widget back to the binding's value; a substituted one is
  replaced by the stored value. Edits to a read-only binding always snap
  back.

Usage:
    class Settings(App):
        def on_mount(self):
            self.volume_link = bind(self, volume, self.query_one("#volume", Input))

Pushes are skipped while the app is paused or not running, and marshaled
through call_from_thread when the owner writes from a background thread.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("bindor.textual")

# App ids currently inside pause(); owned by this module, never stored on the app.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Hold back binding -> widget pushes while the widget tree is rebuilt."""
    _paused_apps.add(id(app))
    try:
        yield
    finally:
        _paused_apps.discard(id(app))


def is_safe(app) -> bool:
    return app.is_running and id(app) not in _paused_apps


class WidgetBinding:
    """A live link between one binding and one widget attribute."""

    def __init__(self, app, binding, widget, attribute: str = "value") -> None:
        self._app = app
        self._binding = binding
        self._widget = widget
        self._attribute = attribute
        self._main = threading.get_ident()
        self._disposed = False
        self._subscription = binding.watch(self._on_binding)
        app.watch(widget, attribute, self._on_widget, init=False)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Unlink. Textual keeps the widget watcher, but it becomes inert."""
        self._disposed = True
        self._subscription.dispose()

    # --- binding -> widget ---

    def _on_binding(self, value) -> None:
        if not is_safe(self._app):
            return
        if threading.get_ident() != self._main:
            self._app.call_from_thread(self._push, value)
        else:
            self._push(value)

    def _push(self, value) -> None:
        if getattr(self._widget, self._attribute) == value:
            return
        try:
            setattr(self._widget, self._attribute, value)
        except NoMatches:
            # The widget's own watch_ method queried a child that is gone.
            logger.debug("Widget %r lost a child while receiving %r", self._widget, value)

    # --- widget -> binding ---

    def _on_widget(self, value) -> None:
        if self._disposed or value == self._binding.value:
            return
        if not self._binding.writable:
            logger.debug("Widget edit %r ignored, binding is read-only", value)
            self._push(self._binding.value)
            return
        change = self._binding.write(value)
        if not change:
            self._push(self._binding.value)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "linked"
        return f"WidgetBinding({self._widget!r}.{self._attribute}, {state})"


def bind(app, binding, widget, attribute: str = "value") -> WidgetBinding:
    """Link binding and widget.attribute both ways. The widget starts at the binding's value."""
    return WidgetBinding(app, binding, widget, attribute)
