from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk

from schemachat.config import AppConfig
from schemachat.gui_kit.error_surface import ErrorSurface
from schemachat.gui_kit.error_surface import show_error_dialog
from schemachat.gui_kit.error_surface import show_warning_dialog
from schemachat.relations import relation_label
from schemachat.schema_model import Position, SchemaSnapshot, TableStructure
from schemachat.viewport import MODE_IDLE, ViewportController

logger = logging.getLogger("schema_visualizer_view")

HEADER_HEIGHT = 30
FIELD_ROW_HEIGHT = 18
CARD_PADDING = 10
# Relation lines attach at a fixed point inside each card.
ANCHOR_OFFSET = (100, 50)
ARROW_LENGTH = 10
ARROW_HALF_WIDTH = 5
SHIFT_MASK = 0x0001


def card_height(table: TableStructure) -> float:
    return HEADER_HEIGHT + FIELD_ROW_HEIGHT * max(1, len(table.fields)) + CARD_PADDING


def relation_anchor(pos: Position) -> tuple[float, float]:
    return (pos.x + ANCHOR_OFFSET[0], pos.y + ANCHOR_OFFSET[1])


def relation_path(source: Position, target: Position) -> list[tuple[float, float]]:
    """Elbow polyline (model space): horizontal, vertical at mid x, horizontal."""

    sx, sy = relation_anchor(source)
    tx, ty = relation_anchor(target)
    mid_x = (sx + tx) / 2
    return [(sx, sy), (mid_x, sy), (mid_x, ty), (tx, ty)]


def field_row_text(field_name: str, field_type: str, *, is_primary: bool, is_foreign: bool) -> str:
    marks = ("PK " if is_primary else "") + ("FK " if is_foreign else "")
    return f"{marks}{field_name}  {field_type}"


class SchemaVisualizerView(ttk.Frame):
    """Pan/zoom canvas of table cards and foreign-key lines for one database."""

    ERROR_SURFACE_CONTEXT = "Schema view"
    ERROR_DIALOG_TITLE = "Schema view error"
    WARNING_DIALOG_TITLE = "Schema view warning"

    def __init__(self, parent: tk.Widget, cfg: AppConfig) -> None:
        super().__init__(parent, padding=8)
        self.cfg = cfg
        self.controller = ViewportController(initial_scale=cfg.initial_scale)
        self.snapshot: SchemaSnapshot | None = None

        self.status_var = tk.StringVar(value="Learn a database to see its tables.")
        self.zoom_var = tk.StringVar(value=self._zoom_text())
        self.select_mode_var = tk.BooleanVar(value=False)
        self.error_surface = ErrorSurface(
            context=self.ERROR_SURFACE_CONTEXT,
            dialog_title=self.ERROR_DIALOG_TITLE,
            warning_title=self.WARNING_DIALOG_TITLE,
            show_dialog=show_error_dialog,
            show_warning=show_warning_dialog,
            set_status=self.status_var.set,
        )

        self.columnconfigure(0, weight=1)
        self.rowconfigure(1, weight=1)

        toolbar = ttk.Frame(self)
        toolbar.grid(row=0, column=0, sticky="ew", pady=(0, 6))
        ttk.Button(toolbar, text="-", width=3, command=self.zoom_out).pack(side="left")
        ttk.Label(toolbar, textvariable=self.zoom_var, width=6, anchor="center").pack(side="left", padx=4)
        ttk.Button(toolbar, text="+", width=3, command=self.zoom_in).pack(side="left")
        ttk.Button(toolbar, text="Reset view", command=self.reset_view).pack(side="left", padx=(8, 0))
        ttk.Checkbutton(
            toolbar,
            text="Select mode (drag to select, Shift adds)",
            variable=self.select_mode_var,
        ).pack(side="left", padx=(12, 0))

        self.canvas = tk.Canvas(self, background="#f3f6fb", highlightthickness=1, highlightbackground="#a8b7cc")
        self.canvas.grid(row=1, column=0, sticky="nsew")
        self.canvas.bind("<Configure>", lambda _event: self.redraw())
        self.canvas.bind("<ButtonPress-1>", self._on_pointer_down)
        self.canvas.bind("<B1-Motion>", self._on_pointer_move)
        self.canvas.bind("<ButtonRelease-1>", self._on_pointer_up)
        self.canvas.bind("<MouseWheel>", self._on_mouse_wheel)
        self.canvas.bind("<Button-4>", lambda _event: self._apply_wheel(-1))
        self.canvas.bind("<Button-5>", lambda _event: self._apply_wheel(1))

        ttk.Label(self, textvariable=self.status_var).grid(row=2, column=0, sticky="w", pady=(6, 0))

    def _zoom_text(self) -> str:
        return f"{round(self.controller.state.scale * 100)}%"

    def _container_width(self) -> float:
        width = self.canvas.winfo_width() if hasattr(self, "canvas") else 0
        if width <= 1:
            return float(self.cfg.default_container_width)
        return float(width)

    def _card_heights(self) -> dict[str, float]:
        return {table.name: card_height(table) for table in self.controller.tables}

    def set_snapshot(self, snapshot: SchemaSnapshot | None) -> None:
        if snapshot is None:
            self.clear()
            return
        self.snapshot = snapshot
        changed = self.controller.set_snapshot(
            snapshot.tables,
            snapshot.relations,
            container_width=self._container_width(),
        )
        if changed:
            logger.info(
                "Rendering schema '%s': tables=%d relations=%d",
                snapshot.database,
                len(self.controller.tables),
                len(self.controller.relations),
            )
        if not snapshot.tables:
            self.error_surface.emit_warning(
                f"database '{snapshot.database}' has no parsable tables",
                location="Render",
                hint="check that the database contains base tables",
                mode="status",
            )
        else:
            self.status_var.set(
                f"Database '{snapshot.database}': {len(self.controller.tables)} tables, "
                f"{len(self.controller.relations)} relations."
            )
        self.redraw()

    def clear(self) -> None:
        self.snapshot = None
        self.controller.clear()
        self.status_var.set("Learn a database to see its tables.")
        self.redraw()

    def zoom_in(self) -> None:
        self.controller.zoom_in_step()
        self.redraw()

    def zoom_out(self) -> None:
        self.controller.zoom_out_step()
        self.redraw()

    def reset_view(self) -> None:
        self.controller.reset_view()
        self.redraw()

    def _on_pointer_down(self, event: tk.Event) -> None:
        additive = bool(int(event.state) & SHIFT_MASK)
        table_name = self.controller.table_at(event.x, event.y, heights=self._card_heights())
        self.controller.pointer_down(
            event.x,
            event.y,
            table_name=table_name,
            additive=additive,
            # shift-drag on the background extends the selection
            marquee=additive or bool(self.select_mode_var.get()),
        )
        self.redraw()

    def _on_pointer_move(self, event: tk.Event) -> None:
        if self.controller.mode == MODE_IDLE:
            return
        self.controller.pointer_move(event.x, event.y, additive=bool(int(event.state) & SHIFT_MASK))
        self.redraw()

    def _on_pointer_up(self, _event: tk.Event) -> None:
        self.controller.pointer_up()
        self.redraw()

    def _on_mouse_wheel(self, event: tk.Event) -> None:
        # Tk reports wheel-up as a positive delta.
        self._apply_wheel(-int(event.delta))

    def _apply_wheel(self, delta_y: float) -> None:
        self.controller.wheel(delta_y)
        self.redraw()

    def redraw(self) -> None:
        self.canvas.delete("all")
        self.zoom_var.set(self._zoom_text())
        controller = self.controller
        scale = controller.state.scale
        font_size = max(5, round(9 * scale))

        for relation in controller.relations:
            source = controller.positions.get(relation.source)
            target = controller.positions.get(relation.target)
            if source is None or target is None:
                continue
            points = [controller.model_to_screen(x, y) for x, y in relation_path(source, target)]
            flat = [coord for point in points for coord in point]
            self.canvas.create_line(*flat, fill="#666666", width=1, dash=(5, 5))
            tip_x, tip_y = points[-1]
            back = ARROW_LENGTH * scale
            half = ARROW_HALF_WIDTH * scale
            self.canvas.create_line(tip_x - back, tip_y - half, tip_x, tip_y, tip_x - back, tip_y + half, fill="#666666")
            mid_x = points[1][0]
            mid_y = (points[0][1] + points[-1][1]) / 2
            self.canvas.create_text(
                mid_x,
                mid_y - 5 * scale,
                text=relation_label(relation),
                anchor="s",
                font=("Segoe UI", font_size),
                fill="#666666",
            )

        width = controller.geometry.table_width
        for table in controller.tables:
            pos = controller.positions.get(table.name)
            if pos is None:
                continue
            x1, y1 = controller.model_to_screen(pos.x, pos.y)
            x2, y2 = controller.model_to_screen(pos.x + width, pos.y + card_height(table))
            selected = table.name in controller.selected
            outline = "#1f5a95" if selected else "#556b8a"
            self.canvas.create_rectangle(x1, y1, x2, y2, fill="#ffffff", outline=outline, width=3 if selected else 1)
            self.canvas.create_rectangle(
                x1,
                y1,
                x2,
                y1 + HEADER_HEIGHT * scale,
                fill="#cfe0f7" if selected else "#dae7f8",
                outline=outline,
            )
            self.canvas.create_text(
                x1 + 8 * scale,
                y1 + HEADER_HEIGHT * scale / 2,
                text=table.name,
                anchor="w",
                font=("Segoe UI", font_size, "bold"),
                fill="#1a2a44",
            )
            row_y = y1 + (HEADER_HEIGHT + FIELD_ROW_HEIGHT / 2 + 4) * scale
            for table_field in table.fields:
                self.canvas.create_text(
                    x1 + 8 * scale,
                    row_y,
                    text=field_row_text(
                        table_field.name,
                        table_field.type,
                        is_primary=table_field.is_primary,
                        is_foreign=table_field.is_foreign,
                    ),
                    anchor="w",
                    font=("Consolas", font_size, "bold" if table_field.is_primary else "normal"),
                    fill="#8a5a00" if table_field.is_primary else "#27374d",
                )
                row_y += FIELD_ROW_HEIGHT * scale

        rect = controller.selection_rect
        if rect is not None:
            left, top = controller.model_to_screen(rect[0], rect[1])
            right, bottom = controller.model_to_screen(rect[2], rect[3])
            self.canvas.create_rectangle(left, top, right, bottom, outline="#1f5a95", dash=(3, 3))
