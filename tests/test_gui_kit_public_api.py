import importlib
import unittest

import schemachat.gui_kit as gui_kit


class TestGUIKitPublicAPI(unittest.TestCase):
    def test_exports_are_the_helpers_the_windows_use(self):
        self.assertEqual(
            sorted(gui_kit.__all__),
            ["ErrorSurface", "JobLifecycleController", "TableView", "UIDispatcher"],
        )
        self.assertFalse(
            hasattr(gui_kit, "get_component_catalog"),
            "gui_kit exposes an unused component catalog. Fix: keep __init__ to plain re-exports.",
        )

    def test_exports_are_the_module_objects(self):
        owners = {
            "ErrorSurface": "schemachat.gui_kit.error_surface",
            "JobLifecycleController": "schemachat.gui_kit.job_lifecycle",
            "TableView": "schemachat.gui_kit.table",
            "UIDispatcher": "schemachat.gui_kit.ui_dispatch",
        }
        for export, module_name in owners.items():
            with self.subTest(export=export):
                module = importlib.import_module(module_name)
                self.assertIs(getattr(gui_kit, export), getattr(module, export))


if __name__ == "__main__":
    unittest.main()
