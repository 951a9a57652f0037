import tkinter as tk
import unittest

from schemachat.gui_kit.table import TableView, estimate_column_widths, normalize_rows, page_summary, paginate_rows


class TestNormalizeRows(unittest.TestCase):
    def test_dict_rows_infer_columns_from_first_row(self):
        cols, rows = normalize_rows([{"name": "alice", "age": 30}, {"name": "bob"}])
        self.assertEqual(cols, ["name", "age"])
        self.assertEqual(rows, [["alice", 30], ["bob", ""]])

    def test_empty_rows_keep_given_columns(self):
        self.assertEqual(normalize_rows([], columns=["a"]), (["a"], []))


class TestEstimateColumnWidths(unittest.TestCase):
    def test_widths_respect_min_max(self):
        widths = estimate_column_widths(["id", "description"], [[1, "short"], [2, "x" * 200]])
        self.assertEqual(widths["id"], 80)
        self.assertEqual(widths["description"], 320)


class TestPagination(unittest.TestCase):
    def test_page_is_clamped(self):
        rows = [[i] for i in range(23)]
        page, index, total = paginate_rows(rows, page_size=10, page_index=7)
        self.assertEqual((index, total), (2, 3))
        self.assertEqual(page, [[20], [21], [22]])

        page, index, _total = paginate_rows(rows, page_size=10, page_index=-1)
        self.assertEqual(index, 0)
        self.assertEqual(len(page), 10)

    def test_empty_rows(self):
        self.assertEqual(paginate_rows([], page_size=10, page_index=0), ([], 0, 0))

    def test_invalid_page_size(self):
        with self.assertRaises(ValueError):
            paginate_rows([[1]], page_size=0, page_index=0)

    def test_page_summary(self):
        self.assertEqual(page_summary(page_index=0, page_size=10, total_rows=23), "Showing 1 to 10 of 23 results")
        self.assertEqual(page_summary(page_index=2, page_size=10, total_rows=23), "Showing 21 to 23 of 23 results")
        self.assertEqual(page_summary(page_index=0, page_size=10, total_rows=0), "No results")


class TestTableViewWidget(unittest.TestCase):
    def setUp(self):
        try:
            self.root = tk.Tk()
        except tk.TclError as exc:
            self.skipTest(f"Tk GUI not available in this environment: {exc}")
        self.root.withdraw()

    def tearDown(self):
        root = getattr(self, "root", None)
        if root is not None:
            root.destroy()

    def test_pages_through_rows(self):
        view = TableView(self.root, page_size=10)
        view.set_rows([{"id": i} for i in range(15)])

        self.assertEqual(len(view.tree.get_children()), 10)
        self.assertEqual(view.summary_var.get(), "Showing 1 to 10 of 15 results")
        self.assertEqual(str(view.prev_btn.cget("state")), tk.DISABLED)

        view.next_page()
        self.assertEqual(view.page_index, 1)
        self.assertEqual(len(view.tree.get_children()), 5)
        self.assertEqual(str(view.next_btn.cget("state")), tk.DISABLED)

        view.next_page()
        self.assertEqual(view.page_index, 1)


if __name__ == "__main__":
    unittest.main()
