import tkinter as tk
import unittest

from schemachat.chat_session import ChatMessage, ChatSession
from schemachat.config import AppConfig
from schemachat.gui_tools.chat_view import ChatPanel, latest_sql_index, message_preview
from schemachat.gui_tools.connect_dialog import read_connection_form
from schemachat.mysql_gateway import ConnectionConfig


class TestChatHelpers(unittest.TestCase):
    def test_message_preview(self):
        self.assertEqual(message_preview(ChatMessage(role="user", content="how\nmany users?")), "You: how many users?")
        sql = ChatMessage(role="bot", content="```sql\nSELECT 1;\n```", mark="sql", sql_result=[{"1": 1}])
        self.assertEqual(message_preview(sql), "SQL: SELECT 1;  [1 row(s)]")

    def test_long_preview_is_truncated(self):
        preview = message_preview(ChatMessage(role="user", content="x" * 500))
        self.assertTrue(preview.endswith("..."))
        self.assertLess(len(preview), 200)

    def test_latest_sql_index(self):
        messages = [
            ChatMessage(role="user", content="q1"),
            ChatMessage(role="bot", content="a1", mark="sql"),
            ChatMessage(role="user", content="q2"),
        ]
        self.assertEqual(latest_sql_index(messages), 1)
        self.assertIsNone(latest_sql_index(messages[:1]))


class TestConnectionForm(unittest.TestCase):
    def test_valid_form(self):
        config, err = read_connection_form(host="localhost", user="root", password="pw", port="")
        self.assertIsNone(err)
        self.assertEqual(config, ConnectionConfig(host="localhost", user="root", password="pw", port=3306))

    def test_invalid_form_returns_message(self):
        config, err = read_connection_form(host="", user="root", password="", port="3306")
        self.assertIsNone(config)
        self.assertIn("Fix:", err)


class TestChatPanelWidget(unittest.TestCase):
    def setUp(self):
        try:
            self.root = tk.Tk()
        except tk.TclError as exc:
            self.skipTest(f"Tk GUI not available in this environment: {exc}")
        self.root.withdraw()
        self.panel = ChatPanel(self.root, AppConfig())
        self.session = ChatSession(
            generate_sql=lambda _model, _prompt: "```sql\nSELECT 1;\n```",
            run_sql=lambda _sql: [{"1": 1}],
        )

    def tearDown(self):
        root = getattr(self, "root", None)
        if root is not None:
            root.destroy()

    def test_messages_are_listed_and_sql_copied(self):
        self.session.send("q", "llama3")
        self.panel.set_session(self.session)
        self.assertEqual(self.panel.message_list.size(), 2)

        self.panel.copy_selected_sql()
        self.assertEqual(self.root.clipboard_get(), "SELECT 1;")

    def test_send_without_session_sets_status(self):
        self.panel.send()
        self.assertIn("no database has been learned", self.panel.status_var.get())

    def test_set_models_selects_first(self):
        self.panel.set_models(["llama3", "qwen2"])
        self.assertEqual(self.panel.model_var.get(), "llama3")

    def test_new_chat_clears_history(self):
        self.session.send("q", "llama3")
        self.panel.set_session(self.session)
        self.panel.clear_chat()
        self.assertEqual(self.session.messages, [])
        self.assertEqual(self.panel.message_list.size(), 0)


if __name__ == "__main__":
    unittest.main()
