"""Result grid: a Treeview wrapper with page controls for SQL result rows."""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk

__all__ = ["TableView", "estimate_column_widths", "normalize_rows", "page_summary", "paginate_rows"]


def normalize_rows(
    rows: list[dict[str, object]],
    columns: list[str] | None = None,
) -> tuple[list[str], list[list[object]]]:
    """Turn dict rows into (columns, value rows); columns come from the first row."""

    if not rows:
        return (columns or []), []

    out_cols = columns or list(rows[0].keys())
    return out_cols, [[row.get(col, "") for col in out_cols] for row in rows]


def estimate_column_widths(
    columns: list[str],
    rows: list[list[object]],
    *,
    min_px: int = 80,
    max_px: int = 320,
    pad_px: int = 24,
    char_px: int = 7,
) -> dict[str, int]:
    widths: dict[str, int] = {}
    for col_idx, col in enumerate(columns):
        longest = len(col)
        for row in rows:
            if col_idx >= len(row):
                continue
            longest = max(longest, len(str(row[col_idx])))
        widths[col] = max(min_px, min(max_px, longest * char_px + pad_px))
    return widths


def paginate_rows(
    rows: list[list[object]],
    *,
    page_size: int,
    page_index: int,
) -> tuple[list[list[object]], int, int]:
    """
    Return one page of rows with normalized page index metadata.

    Returns:
    - page_rows
    - normalized_page_index (0-based)
    - total_pages
    """

    if page_size <= 0:
        raise ValueError(
            "Result table / Pagination: page_size must be > 0. "
            "Fix: set a positive page size."
        )

    total_rows = len(rows)
    if total_rows == 0:
        return [], 0, 0

    total_pages = (total_rows + page_size - 1) // page_size
    normalized_index = min(max(0, page_index), total_pages - 1)
    start = normalized_index * page_size
    return rows[start : start + page_size], normalized_index, total_pages


def page_summary(*, page_index: int, page_size: int, total_rows: int) -> str:
    if total_rows <= 0:
        return "No results"
    start = page_index * page_size + 1
    end = min((page_index + 1) * page_size, total_rows)
    return f"Showing {start} to {end} of {total_rows} results"


class TableView(ttk.Frame):
    def __init__(self, parent: tk.Widget, *, height: int = 6, page_size: int = 10) -> None:
        super().__init__(parent)
        if page_size <= 0:
            raise ValueError(
                "Result table / Pagination: page_size must be > 0. "
                "Fix: set a positive page size."
            )

        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

        self.tree = ttk.Treeview(self, show="headings", height=height)
        self.h_scroll = ttk.Scrollbar(self, orient="horizontal", command=self.tree.xview)
        self.tree.configure(xscrollcommand=self.h_scroll.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        self.h_scroll.grid(row=1, column=0, sticky="ew")

        self._columns: list[str] = []
        self._all_rows: list[list[object]] = []
        self._page_size = page_size
        self._page_index = 0

        bar = ttk.Frame(self)
        bar.grid(row=2, column=0, sticky="ew", pady=(4, 0))
        bar.columnconfigure(0, weight=1)
        self.summary_var = tk.StringVar(value="")
        ttk.Label(bar, textvariable=self.summary_var).grid(row=0, column=0, sticky="w")
        self.prev_btn = ttk.Button(bar, text="Previous", width=9, command=self.previous_page)
        self.prev_btn.grid(row=0, column=1, sticky="e")
        self.next_btn = ttk.Button(bar, text="Next", width=6, command=self.next_page)
        self.next_btn.grid(row=0, column=2, sticky="e", padx=(6, 0))

    @property
    def page_index(self) -> int:
        return self._page_index

    def set_rows(self, rows: list[dict[str, object]]) -> None:
        columns, normalized = normalize_rows(rows)
        self._columns = columns
        self.tree["columns"] = tuple(columns)
        for col in columns:
            self.tree.heading(col, text=col)
            self.tree.column(col, width=120, anchor="w", stretch=True)
        self._all_rows = normalized
        self._page_index = 0
        self._render()

    def previous_page(self) -> None:
        self._page_index -= 1
        self._render()

    def next_page(self) -> None:
        self._page_index += 1
        self._render()

    def _render(self) -> None:
        page_rows, page_index, total_pages = paginate_rows(
            self._all_rows,
            page_size=self._page_size,
            page_index=self._page_index,
        )
        self._page_index = page_index

        for item in self.tree.get_children():
            self.tree.delete(item)
        for values in page_rows:
            self.tree.insert("", tk.END, values=values)
        for col, width in estimate_column_widths(self._columns, page_rows).items():
            self.tree.column(col, width=width)

        self.summary_var.set(
            page_summary(page_index=page_index, page_size=self._page_size, total_rows=len(self._all_rows))
        )
        self.prev_btn.configure(state=(tk.NORMAL if page_index > 0 else tk.DISABLED))
        self.next_btn.configure(state=(tk.NORMAL if page_index + 1 < total_pages else tk.DISABLED))
