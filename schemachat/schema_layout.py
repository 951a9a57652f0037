from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import logging

from schemachat.relations import applicable_relations
from schemachat.schema_model import Position, TableRelation, TableStructure

logger = logging.getLogger("schema_layout")


@dataclass(frozen=True)
class LayoutGeometry:
    table_width: int = 250
    table_height: int = 100
    spacing: int = 50
    level_indent: int = 500
    # siblings stack tighter than independent groups
    sibling_factor: float = 0.6

    @property
    def sibling_gap(self) -> float:
        return self.spacing * self.sibling_factor


DEFAULT_GEOMETRY = LayoutGeometry()


@dataclass
class _PlacementFrame:
    level: int
    start_y: float
    child_y: float
    max_y: float
    pending: Iterator[str]


def build_adjacency(
    tables: list[TableStructure],
    relations: list[TableRelation],
) -> tuple[dict[str, dict[str, None]], dict[str, int]]:
    """
    Undirected neighbor sets plus per-table connection counts.

    Neighbor sets are insertion-ordered (dict keys) so traversal order follows
    relation order. Each relation endpoint counts once for its table; an edge
    only links neighbors when both of its tables are present.
    """

    neighbors: dict[str, dict[str, None]] = {table.name: {} for table in tables}
    counts: dict[str, int] = {table.name: 0 for table in tables}
    for relation in relations:
        both_present = relation.source in neighbors and relation.target in neighbors
        if relation.source in neighbors:
            counts[relation.source] += 1
            if both_present:
                neighbors[relation.source][relation.target] = None
        if relation.target in neighbors:
            counts[relation.target] += 1
            if both_present:
                neighbors[relation.target][relation.source] = None
    return neighbors, counts


def layout_schema(
    tables: list[TableStructure],
    relations: list[TableRelation],
    *,
    container_width: float = 1000,
    geometry: LayoutGeometry = DEFAULT_GEOMETRY,
) -> dict[str, Position]:
    """
    Compute first-display positions for every table in a snapshot.

    Connected clusters are laid out depth-first from their most connected
    table, each neighbor one level further right. Tables without relations are
    wrapped into a grid below all clusters.
    """

    if not tables:
        return {}

    usable = applicable_relations(tables, relations)
    neighbors, counts = build_adjacency(tables, usable)

    # sorted() is stable: equal counts keep table order
    ordered = sorted(tables, key=lambda table: -counts[table.name])
    connected = [table.name for table in ordered if counts[table.name] > 0]
    unconnected = [table.name for table in ordered if counts[table.name] == 0]

    positions: dict[str, Position] = {}
    placed: set[str] = set()

    def place(table_name: str, level: int, start_y: float) -> _PlacementFrame:
        placed.add(table_name)
        positions[table_name] = Position(
            x=level * geometry.level_indent + geometry.spacing,
            y=start_y,
        )
        return _PlacementFrame(
            level=level,
            start_y=start_y,
            child_y=start_y,
            max_y=start_y,
            pending=iter(neighbors[table_name]),
        )

    def place_group(table_name: str, start_y: float) -> float:
        """Depth-first placement of one cluster; returns the bottom edge it reached."""

        # explicit stack: chains of related tables can be thousands deep
        stack = [place(table_name, 0, start_y)]
        while True:
            frame = stack[-1]
            for neighbor in frame.pending:
                if neighbor not in placed:
                    stack.append(place(neighbor, frame.level + 1, frame.child_y))
                    break
            else:
                stack.pop()
                bottom = max(frame.max_y, frame.start_y + geometry.table_height)
                if not stack:
                    return bottom
                parent = stack[-1]
                parent.max_y = max(parent.max_y, bottom)
                parent.child_y = bottom + geometry.table_height + geometry.sibling_gap

    current_y: float = geometry.spacing
    for table_name in connected:
        if table_name not in placed:
            current_y = place_group(table_name, current_y) + geometry.spacing

    grid_x: float = geometry.spacing
    grid_y: float = current_y + geometry.spacing * 2
    for table_name in unconnected:
        if grid_x + geometry.table_width > container_width - geometry.spacing:
            grid_x = geometry.spacing
            grid_y += geometry.table_height + geometry.sibling_gap
        positions[table_name] = Position(x=grid_x, y=grid_y)
        grid_x += geometry.table_width + geometry.spacing

    logger.info(
        "Laid out %d tables (%d connected, %d unconnected).",
        len(positions),
        len(connected),
        len(unconnected),
    )
    return positions
