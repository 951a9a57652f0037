from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk

from schemachat.chat_session import ChatMessage, ChatSession
from schemachat.config import AppConfig
from schemachat.gui_kit.error_surface import ErrorSurface
from schemachat.gui_kit.error_surface import show_error_dialog
from schemachat.gui_kit.error_surface import show_warning_dialog
from schemachat.gui_kit.job_lifecycle import JobLifecycleController
from schemachat.gui_kit.table import TableView
from schemachat.gui_kit.ui_dispatch import UIDispatcher
from schemachat.llm_client import strip_sql_fence

logger = logging.getLogger("chat_view")

PREVIEW_CHARS = 160


def message_preview(message: ChatMessage) -> str:
    """One-line list entry for a chat message."""

    prefix = "You" if message.role == "user" else "SQL" if message.mark == "sql" else "Bot"
    text = strip_sql_fence(message.content) if message.mark == "sql" else message.content
    flat = " ".join(text.split())
    if len(flat) > PREVIEW_CHARS:
        flat = flat[: PREVIEW_CHARS - 3] + "..."
    suffix = ""
    if message.sql_result is not None:
        suffix = f"  [{len(message.sql_result)} row(s)]"
    return f"{prefix}: {flat}{suffix}"


def latest_sql_index(messages: list[ChatMessage]) -> int | None:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].mark == "sql":
            return index
    return None


class ChatPanel(ttk.Frame):
    """Question box, generated SQL list, and paginated results for the learned database."""

    ERROR_SURFACE_CONTEXT = "Chat"
    ERROR_DIALOG_TITLE = "Chat error"
    WARNING_DIALOG_TITLE = "Chat warning"

    def __init__(self, parent: tk.Widget, cfg: AppConfig) -> None:
        super().__init__(parent, padding=8)
        self.cfg = cfg
        self.session: ChatSession | None = None

        self.model_var = tk.StringVar(value="")
        self.question_var = tk.StringVar(value="")
        self.status_var = tk.StringVar(value="Learn a database, then ask a question.")
        self.error_surface = ErrorSurface(
            context=self.ERROR_SURFACE_CONTEXT,
            dialog_title=self.ERROR_DIALOG_TITLE,
            warning_title=self.WARNING_DIALOG_TITLE,
            show_dialog=show_error_dialog,
            show_warning=show_warning_dialog,
            set_status=self.status_var.set,
        )
        self.ui_dispatch = UIDispatcher.from_widget(self)
        self.jobs = JobLifecycleController(
            set_running=self._set_running,
            run_async=self.ui_dispatch.run_in_thread,
        )

        self.columnconfigure(0, weight=1)
        self.rowconfigure(1, weight=1)
        self.rowconfigure(4, weight=1)

        top = ttk.Frame(self)
        top.grid(row=0, column=0, sticky="ew", pady=(0, 6))
        ttk.Label(top, text="Model").pack(side="left")
        self.model_combo = ttk.Combobox(top, textvariable=self.model_var, state="readonly", width=28)
        self.model_combo.pack(side="left", padx=(6, 0))
        ttk.Button(top, text="New chat", command=self.clear_chat).pack(side="right")

        list_box = ttk.Frame(self)
        list_box.grid(row=1, column=0, sticky="nsew")
        list_box.columnconfigure(0, weight=1)
        list_box.rowconfigure(0, weight=1)
        self.message_list = tk.Listbox(list_box, activestyle="none", exportselection=False)
        self.message_list.grid(row=0, column=0, sticky="nsew")
        list_scroll = ttk.Scrollbar(list_box, orient="vertical", command=self.message_list.yview)
        list_scroll.grid(row=0, column=1, sticky="ns")
        self.message_list.configure(yscrollcommand=list_scroll.set)
        self.message_list.bind("<<ListboxSelect>>", lambda _event: self._show_selected_result())

        actions = ttk.Frame(self)
        actions.grid(row=2, column=0, sticky="ew", pady=(6, 0))
        self.copy_btn = ttk.Button(actions, text="Copy SQL", command=self.copy_selected_sql)
        self.copy_btn.pack(side="left")
        self.run_btn = ttk.Button(actions, text="Run SQL", command=self.run_selected_sql)
        self.run_btn.pack(side="left", padx=(6, 0))

        ask = ttk.Frame(self)
        ask.grid(row=3, column=0, sticky="ew", pady=(6, 6))
        ask.columnconfigure(0, weight=1)
        self.question_entry = ttk.Entry(ask, textvariable=self.question_var)
        self.question_entry.grid(row=0, column=0, sticky="ew")
        self.question_entry.bind("<Return>", lambda _event: self.send())
        self.send_btn = ttk.Button(ask, text="Send", command=self.send)
        self.send_btn.grid(row=0, column=1, padx=(6, 0))

        self.result_table = TableView(self, height=6, page_size=cfg.result_page_size)
        self.result_table.grid(row=4, column=0, sticky="nsew")

        ttk.Label(self, textvariable=self.status_var).grid(row=5, column=0, sticky="w", pady=(6, 0))

    def _set_running(self, running: bool, phase: str) -> None:
        state = tk.DISABLED if running else tk.NORMAL
        for button in (self.send_btn, self.run_btn):
            button.configure(state=state)
        self.status_var.set(phase)

    def set_models(self, models: list[str]) -> None:
        self.model_combo["values"] = tuple(models)
        if models and self.model_var.get() not in models:
            self.model_var.set(models[0])

    def set_session(self, session: ChatSession | None) -> None:
        self.session = session
        self.result_table.set_rows([])
        self.refresh_messages()

    def clear_chat(self) -> None:
        if self.session is not None:
            self.session.clear()
        self.result_table.set_rows([])
        self.refresh_messages()
        self.status_var.set("New chat started.")

    def refresh_messages(self, *, select_index: int | None = None) -> None:
        self.message_list.delete(0, tk.END)
        if self.session is None:
            return
        for message in self.session.messages:
            self.message_list.insert(tk.END, message_preview(message))
        if select_index is not None and 0 <= select_index < len(self.session.messages):
            self.message_list.selection_set(select_index)
            self.message_list.see(select_index)

    def _selected_sql_index(self) -> int | None:
        if self.session is None:
            return None
        selection = self.message_list.curselection()
        if selection:
            index = int(selection[0])
            if self.session.messages[index].mark == "sql":
                return index
        return latest_sql_index(self.session.messages)

    def _show_selected_result(self) -> None:
        if self.session is None:
            return
        selection = self.message_list.curselection()
        if not selection:
            return
        message = self.session.messages[int(selection[0])]
        self.result_table.set_rows(message.sql_result or [])

    def send(self) -> None:
        session = self.session
        if session is None:
            self.error_surface.emit(
                location="Send",
                issue="no database has been learned",
                hint="connect and learn a database first",
                mode="status",
            )
            return

        question = self.question_var.get()
        model = self.model_var.get().strip()
        started = self.jobs.run_async(
            worker=lambda: session.send(question, model),
            on_done=self._on_sent,
            on_failed=self._on_failed,
            phase_label="Generating SQL...",
            success_phase="SQL generated.",
            failure_phase="SQL generation failed.",
        )
        if started:
            self.question_var.set("")

    def _on_sent(self, payload: object) -> None:
        if self.session is None:
            return
        self.refresh_messages(select_index=len(self.session.messages) - 1)

    def _on_failed(self, exc: Exception) -> None:
        self.error_surface.emit_exception(exc, location="Request", hint="check the model server and retry")
        self.refresh_messages()

    def copy_selected_sql(self) -> None:
        index = self._selected_sql_index()
        if index is None or self.session is None:
            self.status_var.set("No generated SQL to copy.")
            return
        sql = strip_sql_fence(self.session.messages[index].content)
        self.clipboard_clear()
        self.clipboard_append(sql)
        self.status_var.set("SQL copied to clipboard.")

    def run_selected_sql(self) -> None:
        session = self.session
        index = self._selected_sql_index()
        if session is None or index is None:
            self.status_var.set("No generated SQL to run.")
            return

        def _done(payload: object) -> None:
            self.refresh_messages(select_index=index)
            self.result_table.set_rows(list(payload or []))

        self.jobs.run_async(
            worker=lambda: session.run_message_sql(index),
            on_done=_done,
            on_failed=self._on_failed,
            phase_label="Running SQL...",
            success_phase="SQL finished.",
            failure_phase="SQL run failed.",
        )
