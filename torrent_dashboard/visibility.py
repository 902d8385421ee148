"""Page visibility signal.

The monitor has no browser to ask, so whoever owns the display (a UI
shell, a signal handler) pushes visibility changes here and the scheduler
subscribes to them.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

VisibilityListener = Callable[[bool], None]


class Visibility:
    def __init__(self, visible: bool = True) -> None:
        self._visible = visible
        self._listeners: list[VisibilityListener] = []

    @property
    def visible(self) -> bool:
        return self._visible

    def subscribe(self, listener: VisibilityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def set_visible(self, visible: bool) -> None:
        """Record a transition; repeated values are not re-announced."""
        visible = bool(visible)
        if visible == self._visible:
            return
        self._visible = visible
        logger.debug("Visibility changed: %s", "visible" if visible else "hidden")
        for listener in list(self._listeners):
            try:
                listener(visible)
            except Exception:
                logger.exception("Visibility listener failed")

    def hide(self) -> None:
        self.set_visible(False)

    def show(self) -> None:
        self.set_visible(True)
