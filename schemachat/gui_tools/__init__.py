"""Tool views composed by the main window."""

from schemachat.gui_tools.chat_view import ChatPanel
from schemachat.gui_tools.connect_dialog import ConnectDialog
from schemachat.gui_tools.schema_visualizer_view import SchemaVisualizerView

__all__ = ["ChatPanel", "ConnectDialog", "SchemaVisualizerView"]
