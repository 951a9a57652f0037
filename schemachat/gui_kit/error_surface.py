from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from schemachat.gui_kit.error_contract import coerce_actionable_message
from schemachat.gui_kit.error_contract import format_actionable_error

__all__ = [
    "show_error_dialog",
    "show_warning_dialog",
    "ErrorSurface",
]


def show_error_dialog(title: str, message: str) -> None:
    from tkinter import messagebox

    messagebox.showerror(title, message)


def show_warning_dialog(title: str, message: str) -> None:
    from tkinter import messagebox

    messagebox.showwarning(title, message)


@dataclass
class ErrorSurface:
    """Routes actionable errors to a dialog, the status line, or both."""

    context: str
    dialog_title: str
    warning_title: str | None = None
    show_dialog: Callable[[str, str], None] | None = None
    show_warning: Callable[[str, str], None] | None = None
    set_status: Callable[[str], None] | None = None

    def _deliver(self, message: str, *, mode: str, warning: bool) -> str:
        clean_mode = str(mode).strip().lower()
        if clean_mode not in {"dialog", "status", "mixed"}:
            clean_mode = "mixed"
        if clean_mode in {"mixed", "dialog"}:
            if warning and self.show_warning is not None:
                self.show_warning(self.warning_title or self.dialog_title, message)
            elif self.show_dialog is not None:
                self.show_dialog(self.dialog_title, message)
        if clean_mode in {"mixed", "status"} and self.set_status is not None:
            self.set_status(message)
        return message

    def emit(self, *, location: str, issue: str, hint: str, mode: str = "mixed") -> str:
        message = format_actionable_error(self.context, location, issue, hint)
        return self._deliver(message, mode=mode, warning=False)

    def emit_exception(
        self,
        exc: Exception | str,
        *,
        location: str,
        hint: str,
        mode: str = "mixed",
    ) -> str:
        message = coerce_actionable_message(self.context, exc, location=location, hint=hint)
        return self._deliver(message, mode=mode, warning=False)

    def emit_warning(
        self,
        message: Exception | str,
        *,
        location: str,
        hint: str,
        mode: str = "mixed",
    ) -> str:
        normalized = coerce_actionable_message(self.context, message, location=location, hint=hint)
        return self._deliver(normalized, mode=mode, warning=True)
