"""Modal form for MySQL connection settings."""

from __future__ import annotations

from collections.abc import Callable
import tkinter as tk
from tkinter import ttk

from schemachat.mysql_gateway import ConnectionConfig, validate_connection_config

__all__ = ["ConnectDialog", "read_connection_form"]


def read_connection_form(
    *,
    host: str,
    user: str,
    password: str,
    port: str,
    default_port: int = 3306,
) -> tuple[ConnectionConfig | None, str | None]:
    """Validate raw form text and return (config, error_message)."""

    try:
        config = validate_connection_config(
            host_value=host,
            user_value=user,
            password_value=password,
            port_value=port,
            default_port=default_port,
        )
    except ValueError as exc:
        return None, str(exc)
    return config, None


class ConnectDialog(tk.Toplevel):
    """Collects host/user/password/port and hands a validated config to ``on_submit``."""

    def __init__(
        self,
        parent: tk.Widget,
        *,
        on_submit: Callable[[ConnectionConfig, bool], None],
        initial: dict[str, object] | None = None,
        default_port: int = 3306,
    ) -> None:
        super().__init__(parent)
        self.title("Connect to MySQL")
        self.transient(parent.winfo_toplevel())
        self.grab_set()
        self.resizable(False, False)

        self._on_submit = on_submit
        self._default_port = default_port
        seed = initial or {}
        self.host_var = tk.StringVar(value=str(seed.get("host", "localhost")))
        self.user_var = tk.StringVar(value=str(seed.get("user", "")))
        self.password_var = tk.StringVar(value="")
        self.port_var = tk.StringVar(value=str(seed.get("port", default_port)))
        self.remember_var = tk.BooleanVar(value=bool(initial))
        self._error_var = tk.StringVar(value="")

        body = ttk.Frame(self, padding=12)
        body.pack(fill="both", expand=True)
        body.columnconfigure(1, weight=1)

        rows = (
            ("Server", self.host_var, ""),
            ("Username", self.user_var, ""),
            ("Password", self.password_var, "*"),
            ("Port", self.port_var, ""),
        )
        for row, (label, var, show) in enumerate(rows):
            ttk.Label(body, text=label).grid(row=row, column=0, sticky="w", pady=3)
            entry = ttk.Entry(body, textvariable=var, width=32, show=show)
            entry.grid(row=row, column=1, sticky="ew", padx=(8, 0), pady=3)
            if row == 0:
                entry.focus_set()

        ttk.Checkbutton(body, text="Remember connection (without password)", variable=self.remember_var).grid(
            row=len(rows),
            column=0,
            columnspan=2,
            sticky="w",
            pady=(6, 0),
        )
        ttk.Label(body, textvariable=self._error_var, foreground="#aa0000", wraplength=320).grid(
            row=len(rows) + 1,
            column=0,
            columnspan=2,
            sticky="w",
            pady=(6, 0),
        )

        controls = ttk.Frame(body)
        controls.grid(row=len(rows) + 2, column=0, columnspan=2, sticky="e", pady=(8, 0))
        ttk.Button(controls, text="Connect", command=self._submit).pack(side="left", padx=(0, 6))
        ttk.Button(controls, text="Cancel", command=self.destroy).pack(side="left")

        self.bind("<Return>", lambda _event: self._submit())
        self.bind("<Escape>", lambda _event: self.destroy())

    def _submit(self) -> None:
        config, err = read_connection_form(
            host=self.host_var.get(),
            user=self.user_var.get(),
            password=self.password_var.get(),
            port=self.port_var.get(),
            default_port=self._default_port,
        )
        if err is not None:
            self._error_var.set(err)
            return
        assert config is not None
        self._on_submit(config, bool(self.remember_var.get()))
        self.destroy()
