import tkinter as tk
import unittest
from types import SimpleNamespace

from schemachat.config import AppConfig
from schemachat.gui_tools.schema_visualizer_view import (
    SchemaVisualizerView,
    card_height,
    field_row_text,
    relation_path,
)
from schemachat.relations import build_schema_snapshot
from schemachat.schema_model import Position, TableField, TableStructure
from schemachat.viewport import MODE_DRAGGING_TABLE, MODE_IDLE, MODE_MARQUEE_SELECTING

SOURCES = [
    ("users", "CREATE TABLE `users` (`id` INT PRIMARY KEY, `name` VARCHAR(64))"),
    ("orders", "CREATE TABLE `orders` (`id` INT PRIMARY KEY, `user_id` INT, "
     "FOREIGN KEY (`user_id`) REFERENCES `users`(`id`))"),
]


class TestDrawingHelpers(unittest.TestCase):
    def test_relation_path_is_an_elbow_between_anchors(self):
        path = relation_path(Position(550, 50), Position(50, 50))
        self.assertEqual(path, [(650, 100), (400.0, 100), (400.0, 100), (150, 100)])

        path = relation_path(Position(0, 0), Position(500, 200))
        self.assertEqual(path, [(100, 50), (350.0, 50), (350.0, 250), (600, 250)])

    def test_card_height_grows_with_fields(self):
        empty = TableStructure(name="t")
        two = TableStructure(name="t", fields=[TableField("a", "int"), TableField("b", "int")])
        self.assertEqual(card_height(empty), 58)
        self.assertEqual(card_height(two), 76)

    def test_field_row_marks_keys(self):
        self.assertEqual(field_row_text("id", "int", is_primary=True, is_foreign=False), "PK id  int")
        self.assertEqual(field_row_text("user_id", "int", is_primary=False, is_foreign=True), "FK user_id  int")


class TestSchemaVisualizerView(unittest.TestCase):
    def setUp(self):
        try:
            self.root = tk.Tk()
        except tk.TclError as exc:
            self.skipTest(f"Tk GUI not available in this environment: {exc}")
        self.root.withdraw()
        self.view = SchemaVisualizerView(self.root, AppConfig())
        self.snapshot = build_schema_snapshot("shop", SOURCES)

    def tearDown(self):
        root = getattr(self, "root", None)
        if root is not None:
            root.destroy()

    def _event(self, x: float, y: float, *, shift: bool = False, delta: int = 0):
        return SimpleNamespace(x=x, y=y, state=0x0001 if shift else 0, delta=delta)

    def test_set_snapshot_draws_cards_and_lines(self):
        self.view.set_snapshot(self.snapshot)
        self.assertEqual(set(self.view.controller.positions), {"users", "orders"})
        self.assertTrue(self.view.canvas.find_all())
        self.assertIn("2 tables, 1 relations", self.view.status_var.get())

    def test_dragging_a_card_moves_only_that_table(self):
        self.view.set_snapshot(self.snapshot)
        users_before = self.view.controller.positions["users"]
        orders_x, orders_y = self.view.controller.model_to_screen(560, 60)

        self.view._on_pointer_down(self._event(orders_x, orders_y))
        self.assertEqual(self.view.controller.mode, MODE_DRAGGING_TABLE)
        self.view._on_pointer_move(self._event(orders_x + 30, orders_y + 60))
        self.view._on_pointer_up(self._event(orders_x + 30, orders_y + 60))

        self.assertEqual(self.view.controller.mode, MODE_IDLE)
        self.assertIs(self.view.controller.positions["users"], users_before)
        self.assertAlmostEqual(self.view.controller.positions["orders"].x, 600.0)
        self.assertAlmostEqual(self.view.controller.positions["orders"].y, 150.0)

    def test_select_mode_uses_marquee(self):
        self.view.set_snapshot(self.snapshot)
        self.view.select_mode_var.set(True)

        self.view._on_pointer_down(self._event(1, 1))
        self.assertEqual(self.view.controller.mode, MODE_MARQUEE_SELECTING)
        self.view._on_pointer_move(self._event(600, 100))
        self.assertEqual(self.view.controller.selected, {"users", "orders"})

    def test_shift_drag_on_background_extends_selection(self):
        self.view.set_snapshot(self.snapshot)
        self.view.controller.selected = {"orders"}

        self.view._on_pointer_down(self._event(1, 1, shift=True))
        self.assertEqual(self.view.controller.mode, MODE_MARQUEE_SELECTING)
        self.view._on_pointer_move(self._event(60, 60, shift=True))
        self.assertEqual(self.view.controller.selected, {"users", "orders"})

    def test_wheel_and_buttons_zoom(self):
        self.view._on_mouse_wheel(self._event(0, 0, delta=120))
        self.assertAlmostEqual(self.view.controller.state.scale, 0.66)
        self.view.zoom_out()
        self.assertAlmostEqual(self.view.controller.state.scale, 0.56)
        self.assertEqual(self.view.zoom_var.get(), "56%")

    def test_same_snapshot_keeps_positions(self):
        self.view.set_snapshot(self.snapshot)
        self.view.controller.positions["users"] = Position(5, 5)
        self.view.set_snapshot(self.snapshot)
        self.assertEqual(self.view.controller.positions["users"], Position(5, 5))

    def test_clear_removes_drawing(self):
        self.view.set_snapshot(self.snapshot)
        self.view.set_snapshot(None)
        self.assertEqual(self.view.canvas.find_all(), ())
        self.assertEqual(self.view.controller.positions, {})


if __name__ == "__main__":
    unittest.main()
