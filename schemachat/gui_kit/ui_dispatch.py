from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Callable
import tkinter as tk

__all__ = ["UIDispatcher", "safe_dispatch"]

logger = logging.getLogger("ui_dispatch")


def _widget_alive(widget: object) -> bool:
    winfo_exists = getattr(widget, "winfo_exists", None)
    if not callable(winfo_exists):
        return False
    try:
        return bool(winfo_exists())
    except tk.TclError:
        return False


def safe_dispatch(
    after: Callable[[int, Callable[[], None]], object],
    callback: Callable[[], None],
    *,
    delay_ms: int = 0,
    is_alive: Callable[[], bool] | None = None,
) -> bool:
    if is_alive is not None and not bool(is_alive()):
        return False
    try:
        after(max(0, int(delay_ms)), callback)
    except tk.TclError:
        return False
    return True


@dataclass(frozen=True)
class UIDispatcher:
    """Marshals worker-thread results back onto the Tk event loop."""

    after: Callable[[int, Callable[[], None]], object]
    is_alive: Callable[[], bool]

    @classmethod
    def from_widget(cls, widget: object) -> "UIDispatcher":
        after_cb = getattr(widget, "after", None)
        if not callable(after_cb):
            raise ValueError(
                "UI dispatcher requires widget.after callback support. "
                "Fix: pass a Tk widget with an after() method."
            )
        return cls(after=after_cb, is_alive=lambda: _widget_alive(widget))

    def post(self, callback: Callable[[], None], *, delay_ms: int = 0) -> bool:
        return safe_dispatch(self.after, callback, delay_ms=delay_ms, is_alive=self.is_alive)

    def run_in_thread(
        self,
        worker: Callable[[], object],
        on_done: Callable[[object], None],
        on_failed: Callable[[Exception], None],
    ) -> threading.Thread:
        """Run ``worker`` on a daemon thread; callbacks run on the UI thread."""

        def _target() -> None:
            try:
                payload = worker()
            except Exception as exc:
                if not isinstance(exc, ValueError):
                    logger.exception("Background job failed: %s", exc)
                self.post(lambda exc=exc: on_failed(exc))
                return
            self.post(lambda: on_done(payload))

        thread = threading.Thread(target=_target, daemon=True)
        thread.start()
        return thread
