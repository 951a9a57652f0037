from __future__ import annotations

from dataclasses import dataclass, field
import logging

from schemachat.relations import applicable_relations
from schemachat.schema_layout import DEFAULT_GEOMETRY, LayoutGeometry, layout_schema
from schemachat.schema_model import Position, TableRelation, TableStructure

__all__ = [
    "MODE_DRAGGING_TABLE",
    "MODE_IDLE",
    "MODE_MARQUEE_SELECTING",
    "MODE_PANNING_CANVAS",
    "VIEWPORT_MODES",
    "GestureState",
    "ViewportController",
    "ViewportState",
]

logger = logging.getLogger("viewport")

MODE_IDLE = "idle"
MODE_PANNING_CANVAS = "panning-canvas"
MODE_DRAGGING_TABLE = "dragging-table"
MODE_MARQUEE_SELECTING = "marquee-selecting"
VIEWPORT_MODES: tuple[str, ...] = (
    MODE_IDLE,
    MODE_PANNING_CANVAS,
    MODE_DRAGGING_TABLE,
    MODE_MARQUEE_SELECTING,
)

MIN_SCALE = 0.1
MAX_SCALE = 2.0
BUTTON_MAX_SCALE = 1.0
BUTTON_STEP = 0.1
WHEEL_ZOOM_IN = 1.1
WHEEL_ZOOM_OUT = 0.9
MARQUEE_HIT_WIDTH = 200
MARQUEE_HIT_HEIGHT = 100


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(low, value), high)


@dataclass
class ViewportState:
    scale: float = 0.6
    pan: Position = field(default_factory=lambda: Position(0.0, 0.0))


@dataclass
class GestureState:
    mode: str = MODE_IDLE
    table_name: str | None = None
    drag_offset: tuple[float, float] = (0.0, 0.0)
    pointer_start: tuple[float, float] = (0.0, 0.0)
    pan_start: Position = field(default_factory=lambda: Position(0.0, 0.0))
    marquee_start: tuple[float, float] | None = None
    marquee_current: tuple[float, float] | None = None
    base_selection: frozenset[str] = frozenset()


class ViewportController:
    """
    Pan/zoom/drag/marquee state for one rendered schema snapshot.

    Renderers forward raw pointer coordinates (canvas pixels) and read back
    ``positions``, ``selected``, ``state.scale`` and ``state.pan`` to draw.
    Positions are in model space; screen = model * scale + pan.
    """

    def __init__(
        self,
        *,
        initial_scale: float = 0.6,
        geometry: LayoutGeometry = DEFAULT_GEOMETRY,
    ) -> None:
        self.initial_scale = _clamp(float(initial_scale), MIN_SCALE, MAX_SCALE)
        self.geometry = geometry
        self.state = ViewportState(scale=self.initial_scale)
        self.gesture = GestureState()
        self.tables: list[TableStructure] = []
        self.relations: list[TableRelation] = []
        self.positions: dict[str, Position] = {}
        self.selected: set[str] = set()
        self._snapshot_source: tuple[list[TableStructure], list[TableRelation]] | None = None

    @property
    def mode(self) -> str:
        return self.gesture.mode

    def set_snapshot(
        self,
        tables: list[TableStructure],
        relations: list[TableRelation],
        *,
        container_width: float = 1000,
    ) -> bool:
        """
        Replace the rendered snapshot and lay it out.

        Returns False when the same table/relation objects are passed again, in
        which case positions (including user drags) are kept.
        """

        source = self._snapshot_source
        if source is not None and source[0] is tables and source[1] is relations:
            return False

        self._snapshot_source = (tables, relations)
        self.tables = list(tables)
        self.relations = applicable_relations(self.tables, list(relations))
        self.gesture = GestureState()
        self.selected = set()
        self.state = ViewportState(scale=self.initial_scale)
        self.positions = layout_schema(
            self.tables,
            self.relations,
            container_width=container_width,
            geometry=self.geometry,
        )
        logger.debug("Viewport snapshot replaced: tables=%d", len(self.tables))
        return True

    def clear(self) -> None:
        self._snapshot_source = None
        self.tables = []
        self.relations = []
        self.positions = {}
        self.selected = set()
        self.gesture = GestureState()
        self.state = ViewportState(scale=self.initial_scale)

    def screen_to_model(self, screen_x: float, screen_y: float) -> tuple[float, float]:
        scale = self.state.scale
        return (
            (screen_x - self.state.pan.x) / scale,
            (screen_y - self.state.pan.y) / scale,
        )

    def model_to_screen(self, model_x: float, model_y: float) -> tuple[float, float]:
        scale = self.state.scale
        return (
            model_x * scale + self.state.pan.x,
            model_y * scale + self.state.pan.y,
        )

    def table_at(
        self,
        screen_x: float,
        screen_y: float,
        *,
        heights: dict[str, float] | None = None,
    ) -> str | None:
        """Topmost table (last drawn) under a screen point."""

        model_x, model_y = self.screen_to_model(screen_x, screen_y)
        for table in reversed(self.tables):
            pos = self.positions.get(table.name)
            if pos is None:
                continue
            height = (heights or {}).get(table.name, self.geometry.table_height)
            if pos.x <= model_x <= pos.x + self.geometry.table_width and pos.y <= model_y <= pos.y + height:
                return table.name
        return None

    def _reset_gesture(self) -> None:
        self.gesture = GestureState()

    def pointer_down(
        self,
        screen_x: float,
        screen_y: float,
        *,
        table_name: str | None = None,
        additive: bool = False,
        marquee: bool = False,
    ) -> str:
        if table_name is not None:
            pos = self.positions.get(table_name)
            if pos is None:
                self._reset_gesture()
                return self.gesture.mode
            model_x, model_y = self.screen_to_model(screen_x, screen_y)
            self.gesture = GestureState(
                mode=MODE_DRAGGING_TABLE,
                table_name=table_name,
                drag_offset=(model_x - pos.x, model_y - pos.y),
            )
            return self.gesture.mode

        if not additive:
            self.selected = set()

        if marquee:
            start = self.screen_to_model(screen_x, screen_y)
            self.gesture = GestureState(
                mode=MODE_MARQUEE_SELECTING,
                marquee_start=start,
                marquee_current=start,
                base_selection=frozenset(self.selected),
            )
        else:
            self.gesture = GestureState(
                mode=MODE_PANNING_CANVAS,
                pointer_start=(screen_x, screen_y),
                pan_start=self.state.pan,
            )
        return self.gesture.mode

    def pointer_move(self, screen_x: float, screen_y: float, *, additive: bool = False) -> str:
        mode = self.gesture.mode
        if mode == MODE_DRAGGING_TABLE:
            self._drag_to(screen_x, screen_y)
        elif mode == MODE_PANNING_CANVAS:
            start_x, start_y = self.gesture.pointer_start
            self.state.pan = Position(
                x=screen_x - start_x + self.gesture.pan_start.x,
                y=screen_y - start_y + self.gesture.pan_start.y,
            )
        elif mode == MODE_MARQUEE_SELECTING:
            self._update_marquee(screen_x, screen_y, additive=additive)
        return self.gesture.mode

    def pointer_up(self) -> str:
        self._reset_gesture()
        return self.gesture.mode

    def _drag_to(self, screen_x: float, screen_y: float) -> None:
        table_name = self.gesture.table_name
        if table_name is None or table_name not in self.positions:
            # snapshot replaced mid-drag
            self._reset_gesture()
            return
        model_x, model_y = self.screen_to_model(screen_x, screen_y)
        offset_x, offset_y = self.gesture.drag_offset
        self.positions[table_name] = Position(x=model_x - offset_x, y=model_y - offset_y)

    def _update_marquee(self, screen_x: float, screen_y: float, *, additive: bool) -> None:
        start = self.gesture.marquee_start
        if start is None:
            self._reset_gesture()
            return
        current = self.screen_to_model(screen_x, screen_y)
        self.gesture.marquee_current = current

        hits = self.tables_in_rect(start, current)
        if additive:
            self.selected = set(self.gesture.base_selection) | hits
        else:
            self.selected = hits

    def tables_in_rect(
        self,
        corner_a: tuple[float, float],
        corner_b: tuple[float, float],
    ) -> set[str]:
        left = min(corner_a[0], corner_b[0])
        right = max(corner_a[0], corner_b[0])
        top = min(corner_a[1], corner_b[1])
        bottom = max(corner_a[1], corner_b[1])

        hits: set[str] = set()
        for table_name, pos in self.positions.items():
            if (
                pos.x < right
                and pos.x + MARQUEE_HIT_WIDTH > left
                and pos.y < bottom
                and pos.y + MARQUEE_HIT_HEIGHT > top
            ):
                hits.add(table_name)
        return hits

    @property
    def selection_rect(self) -> tuple[float, float, float, float] | None:
        """Model-space (left, top, right, bottom) of the active marquee."""

        start = self.gesture.marquee_start
        current = self.gesture.marquee_current
        if self.gesture.mode != MODE_MARQUEE_SELECTING or start is None or current is None:
            return None
        return (
            min(start[0], current[0]),
            min(start[1], current[1]),
            max(start[0], current[0]),
            max(start[1], current[1]),
        )

    def wheel(self, delta_y: float) -> float:
        """Positive delta scrolls away from the user and zooms out."""

        if delta_y == 0:
            return self.state.scale
        factor = WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN
        self.state.scale = _clamp(self.state.scale * factor, MIN_SCALE, MAX_SCALE)
        return self.state.scale

    def zoom_in_step(self) -> float:
        # Button zoom tops out at 1.0 even though wheel zoom reaches 2.0.
        self.state.scale = min(self.state.scale + BUTTON_STEP, BUTTON_MAX_SCALE)
        return self.state.scale

    def zoom_out_step(self) -> float:
        self.state.scale = max(self.state.scale - BUTTON_STEP, MIN_SCALE)
        return self.state.scale

    def reset_view(self) -> None:
        self.state = ViewportState(scale=self.initial_scale)
