"""Reusable Tk helpers shared by the SchemaChat windows."""

from schemachat.gui_kit.error_surface import ErrorSurface
from schemachat.gui_kit.job_lifecycle import JobLifecycleController
from schemachat.gui_kit.table import TableView
from schemachat.gui_kit.ui_dispatch import UIDispatcher

__all__ = [
    "ErrorSurface",
    "JobLifecycleController",
    "TableView",
    "UIDispatcher",
]
