from __future__ import annotations

from dataclasses import dataclass, field
import logging
import tkinter as tk
from tkinter import ttk
from typing import Any, Callable

from schemachat.chat_session import ChatSession, build_schema_context
from schemachat.config import AppConfig
from schemachat.gui_kit.error_surface import ErrorSurface
from schemachat.gui_kit.error_surface import show_error_dialog
from schemachat.gui_kit.error_surface import show_warning_dialog
from schemachat.gui_kit.job_lifecycle import JobLifecycleController
from schemachat.gui_kit.ui_dispatch import UIDispatcher
from schemachat.gui_tools.chat_view import ChatPanel
from schemachat.gui_tools.connect_dialog import ConnectDialog
from schemachat.gui_tools.schema_visualizer_view import SchemaVisualizerView
from schemachat.llm_client import OllamaClient
from schemachat.mysql_gateway import (
    ConnectionConfig,
    ConnectionResult,
    connect_and_list_databases,
    learn_database,
    run_sql,
)
from schemachat.relations import build_schema_snapshot
from schemachat.schema_model import SchemaSnapshot
from schemachat.snapshot_store import CONNECTION_CONFIG_KEY, SnapshotCache

logger = logging.getLogger("gui_home")


@dataclass(frozen=True)
class LearnOutcome:
    snapshot: SchemaSnapshot
    schema_context: str
    models: list[str] = field(default_factory=list)
    failed_tables: list[str] = field(default_factory=list)
    models_error: str | None = None


def learn_schema(
    config: ConnectionConfig,
    database: str,
    *,
    cfg: AppConfig,
    list_models: Callable[[], list[str]],
) -> LearnOutcome:
    """Worker-thread body of "Learn schema": read the database, parse it, fetch models."""

    learned = learn_database(
        config,
        database,
        sample_row_limit=cfg.sample_row_limit,
        connect_timeout=cfg.mysql_connect_timeout,
    )
    snapshot = build_schema_snapshot(database, learned.ddl_sources())
    context = build_schema_context(learned.structures)

    models: list[str] = []
    models_error = None
    try:
        models = list_models()
    except ValueError as exc:
        # schema is still usable without a model list
        models_error = str(exc)

    return LearnOutcome(
        snapshot=snapshot,
        schema_context=context,
        models=models,
        failed_tables=[source.table_name for source in learned.structures if source.error is not None],
        models_error=models_error,
    )


class App(ttk.Frame):
    """
    Main window: connection bar, schema canvas on the left, chat on the right.
    """

    ERROR_SURFACE_CONTEXT = "SchemaChat"
    ERROR_DIALOG_TITLE = "SchemaChat error"
    WARNING_DIALOG_TITLE = "SchemaChat warning"

    def __init__(
        self,
        root: tk.Tk,
        cfg: AppConfig,
        *,
        cache: SnapshotCache | None = None,
        llm: OllamaClient | None = None,
    ) -> None:
        super().__init__(root)
        self.root = root
        self.cfg = cfg
        self.cache = cache or SnapshotCache()
        self.llm = llm or OllamaClient(cfg.ollama_base_url, timeout=cfg.ollama_timeout)
        self.connection: ConnectionConfig | None = None

        self.root.title("SchemaChat")
        self.root.geometry("1280x760")
        self.pack(fill="both", expand=True)

        self.connection_var = tk.StringVar(value="Not connected")
        self.database_var = tk.StringVar(value="")
        self.status_var = tk.StringVar(value="Connect to a MySQL server to begin.")
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

        header = ttk.Frame(self, padding=(8, 8, 8, 4))
        header.pack(fill="x")
        self.connect_btn = ttk.Button(header, text="Connect...", command=self.open_connect_dialog)
        self.connect_btn.pack(side="left")
        ttk.Label(header, textvariable=self.connection_var).pack(side="left", padx=(8, 16))
        ttk.Label(header, text="Database").pack(side="left")
        self.database_combo = ttk.Combobox(header, textvariable=self.database_var, state="readonly", width=28)
        self.database_combo.pack(side="left", padx=(6, 6))
        self.database_combo.bind("<<ComboboxSelected>>", lambda _event: self.on_database_selected())
        self.learn_btn = ttk.Button(header, text="Learn schema", command=self.learn_selected_database)
        self.learn_btn.pack(side="left")

        paned = ttk.Panedwindow(self, orient="horizontal")
        paned.pack(fill="both", expand=True, padx=8)
        self.visualizer = SchemaVisualizerView(paned, cfg)
        self.chat = ChatPanel(paned, cfg)
        paned.add(self.visualizer, weight=3)
        paned.add(self.chat, weight=2)

        ttk.Label(self, textvariable=self.status_var, padding=(8, 4)).pack(fill="x")

    def _set_running(self, running: bool, phase: str) -> None:
        state = tk.DISABLED if running else tk.NORMAL
        for button in (self.connect_btn, self.learn_btn):
            button.configure(state=state)
        self.status_var.set(phase)

    def open_connect_dialog(self) -> ConnectDialog:
        return ConnectDialog(
            self,
            on_submit=self.connect,
            initial=self.cache.load_connection_config(),
            default_port=self.cfg.default_mysql_port,
        )

    def connect(self, config: ConnectionConfig, remember: bool = False) -> bool:
        def _done(payload: Any) -> None:
            self._on_connected(config, payload, remember)

        return self.jobs.run_async(
            worker=lambda: connect_and_list_databases(config, connect_timeout=self.cfg.mysql_connect_timeout),
            on_done=_done,
            on_failed=lambda exc: self._on_failed(exc, location="Connect"),
            phase_label=f"Connecting to {config.host}:{config.port}...",
            success_phase="Connected.",
            failure_phase="Connection failed.",
        )

    def _on_connected(self, config: ConnectionConfig, result: ConnectionResult, remember: bool) -> None:
        self.connection = config
        if remember:
            self.cache.save_connection_config(config)
        else:
            self.cache.remove_item(CONNECTION_CONFIG_KEY)
        self.connection_var.set(f"{config.user}@{config.host}:{config.port}")
        self.database_combo["values"] = tuple(result.databases)
        self.database_var.set("")
        self.visualizer.clear()
        self.chat.set_session(None)
        self.status_var.set(f"{result.message} ({len(result.databases)} databases).")

    def on_database_selected(self) -> None:
        database = self.database_var.get().strip()
        self.visualizer.clear()
        self.chat.set_session(None)
        if not database:
            return
        try:
            cached = self.cache.load_snapshot(database)
        except ValueError as exc:
            self.error_surface.emit_exception(exc, location="Schema cache", hint="learn the database again", mode="status")
            return
        if cached is None:
            self.status_var.set(f"Database '{database}' selected. Click 'Learn schema' to load it.")
            return
        logger.info("Restored cached snapshot for '%s'", database)
        self.visualizer.set_snapshot(cached)
        self.chat.set_session(self._new_chat_session(database, self.cache.load_schema_context()))

    def learn_selected_database(self) -> bool:
        database = self.database_var.get().strip()
        config = self.connection
        if config is None:
            self.error_surface.emit(
                location="Learn schema",
                issue="not connected to a MySQL server",
                hint="click 'Connect...' first",
                mode="status",
            )
            return False
        if not database:
            self.error_surface.emit(
                location="Learn schema",
                issue="no database selected",
                hint="choose a database from the list",
                mode="status",
            )
            return False

        self.cache.clear_schema_data()
        self.visualizer.clear()
        self.chat.set_session(None)
        return self.jobs.run_async(
            worker=lambda: learn_schema(config, database, cfg=self.cfg, list_models=self.llm.list_models),
            on_done=lambda payload: self._on_learned(config, database, payload),
            on_failed=lambda exc: self._on_failed(exc, location="Learn schema"),
            phase_label=f"Learning '{database}'...",
            success_phase="Schema learned.",
            failure_phase="Learning failed.",
        )

    def _on_learned(self, config: ConnectionConfig, database: str, outcome: LearnOutcome) -> None:
        if self.connection is not config or self.database_var.get().strip() != database:
            logger.info("Discarding learn result for '%s'; selection changed", database)
            return

        self.cache.save_snapshot(outcome.snapshot)
        self.cache.save_schema_context(outcome.schema_context)
        self.visualizer.set_snapshot(outcome.snapshot)
        self.chat.set_models(outcome.models)
        self.chat.set_session(self._new_chat_session(database, outcome.schema_context))

        if outcome.models_error is not None:
            self.error_surface.emit_warning(
                outcome.models_error,
                location="Models",
                hint="start Ollama to enable chat",
                mode="status",
            )
        elif outcome.failed_tables:
            self.status_var.set(
                f"Learned '{database}' with {len(outcome.failed_tables)} unreadable table(s): "
                + ", ".join(outcome.failed_tables)
            )
        else:
            self.status_var.set(f"Learned '{database}': {len(outcome.snapshot.tables)} tables.")

    def _new_chat_session(self, database: str, schema_context: str) -> ChatSession:
        config = self.connection
        timeout = self.cfg.sql_run_timeout

        def _run(sql: str) -> list[dict[str, Any]]:
            if config is None:
                raise ValueError(
                    "SchemaChat / Run SQL: not connected to a MySQL server. Fix: click 'Connect...' first."
                )
            result = run_sql(config, database, sql, timeout=timeout)
            # the chat session renders its own timestamped placeholder
            return result.rows if result.count else []

        return ChatSession(generate_sql=self.llm.generate_sql, run_sql=_run, schema_context=schema_context)

    def _on_failed(self, exc: Exception, *, location: str) -> None:
        self.error_surface.emit_exception(exc, location=location, hint="check the connection settings and retry")
