import threading
import tkinter as tk
import unittest

from schemachat.gui_kit.ui_dispatch import UIDispatcher
from schemachat.gui_kit.ui_dispatch import safe_dispatch


class _FakeWidget:
    def __init__(self) -> None:
        self.alive = True
        self.raise_on_after = False
        self.posted: list[object] = []
        self._lock = threading.Lock()

    def after(self, _ms: int, callback):
        if self.raise_on_after:
            raise tk.TclError("widget destroyed")
        with self._lock:
            self.posted.append(callback)
        return None

    def winfo_exists(self) -> int:
        return 1 if self.alive else 0

    def drain(self) -> None:
        with self._lock:
            pending, self.posted = self.posted, []
        for callback in pending:
            callback()


class TestSafeDispatch(unittest.TestCase):
    def test_skips_when_not_alive(self):
        calls: list[str] = []

        def after(_ms: int, callback):
            callback()

        self.assertFalse(safe_dispatch(after, lambda: calls.append("ran"), is_alive=lambda: False))
        self.assertEqual(calls, [])

    def test_returns_false_on_tcl_error(self):
        def bad_after(_ms: int, _callback):
            raise tk.TclError("widget destroyed")

        self.assertFalse(safe_dispatch(bad_after, lambda: None))


class TestUIDispatcher(unittest.TestCase):
    def test_from_widget_requires_after(self):
        with self.assertRaises(ValueError):
            UIDispatcher.from_widget(object())

    def test_post_drops_when_widget_destroyed(self):
        widget = _FakeWidget()
        dispatcher = UIDispatcher.from_widget(widget)
        widget.alive = False
        self.assertFalse(dispatcher.post(lambda: None))
        self.assertEqual(widget.posted, [])

    def test_run_in_thread_posts_result_to_ui_thread(self):
        widget = _FakeWidget()
        dispatcher = UIDispatcher.from_widget(widget)
        done: list[object] = []

        thread = dispatcher.run_in_thread(lambda: 42, done.append, lambda exc: done.append(exc))
        thread.join(timeout=5)
        self.assertEqual(done, [], "Callbacks must wait for the Tk loop. Fix: post through widget.after().")

        widget.drain()
        self.assertEqual(done, [42])

    def test_run_in_thread_posts_failure(self):
        widget = _FakeWidget()
        dispatcher = UIDispatcher.from_widget(widget)
        failures: list[Exception] = []

        def worker():
            raise ValueError("MySQL / Connect: refused. Fix: start MySQL.")

        thread = dispatcher.run_in_thread(worker, lambda _payload: None, failures.append)
        thread.join(timeout=5)
        widget.drain()
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0], ValueError)

    def test_unexpected_errors_are_logged(self):
        widget = _FakeWidget()
        dispatcher = UIDispatcher.from_widget(widget)
        failures: list[Exception] = []

        def worker():
            raise RuntimeError("bug")

        with self.assertLogs("ui_dispatch", level="ERROR"):
            thread = dispatcher.run_in_thread(worker, lambda _payload: None, failures.append)
            thread.join(timeout=5)
        widget.drain()
        self.assertIsInstance(failures[0], RuntimeError)


if __name__ == "__main__":
    unittest.main()
