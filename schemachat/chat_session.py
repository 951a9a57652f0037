from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
import json
import logging
from typing import Any, Callable

from schemachat.gui_kit.error_contract import format_actionable_error
from schemachat.llm_client import strip_sql_fence
from schemachat.mysql_gateway import EMPTY_RESULT_MESSAGE, TableSource

logger = logging.getLogger("chat_session")

SQL_INSTRUCTION = (
    "Understand the SQL statements and sample data above and answer the question. "
    "Reply only with a markdown sql code block and no other text."
)


def _chat_error(location: str, issue: str, hint: str) -> str:
    return format_actionable_error("Chat", location, issue, hint)


def build_schema_context(structures: list[TableSource]) -> str:
    """Concatenate CREATE TABLE text and sample rows of every learned table."""

    blocks: list[str] = []
    for source in structures:
        if source.error is not None or not source.create_sql:
            continue
        sample_json = json.dumps(source.sample_rows, indent=2, default=str, ensure_ascii=False)
        blocks.append(
            f"{source.create_sql}\n\n"
            f"-- Sample query:\n{source.sample_query}\n"
            f"-- Sample data:\n{sample_json}\n"
        )
    return "\n\n".join(blocks)


def build_sql_prompt(schema_context: str, question: str) -> str:
    return f"{schema_context}\n\n{SQL_INSTRUCTION}\n\nQuestion: {question}"


def _display_value(value: Any) -> Any:
    if value is None:
        return "NULL"
    if isinstance(value, (datetime, date)):
        return value.isoformat(sep=" ") if isinstance(value, datetime) else value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str, ensure_ascii=False)
    return value


def normalize_result_rows(
    rows: list[dict[str, Any]],
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Make every result cell renderable; an empty result becomes one placeholder row."""

    if not rows:
        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        return [{"result": EMPTY_RESULT_MESSAGE, "count": 0, "timestamp": stamp}]
    return [{key: _display_value(value) for key, value in row.items()} for row in rows]


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "user" | "bot"
    content: str
    mark: str | None = None  # "sql" for generated statements
    sql_result: list[dict[str, Any]] | None = None


@dataclass
class ChatSession:
    """
    Conversation state for one learned database.

    ``generate_sql(model, prompt)`` returns a fenced SQL block and
    ``run_sql(sql)`` returns result rows; both are injected so the session
    stays free of network code.
    """

    generate_sql: Callable[[str, str], str]
    run_sql: Callable[[str], list[dict[str, Any]]]
    schema_context: str = ""
    messages: list[ChatMessage] = field(default_factory=list)
    is_loading: bool = False
    is_running_sql: bool = False

    def send(self, question: str, model: str) -> ChatMessage | None:
        """Ask for SQL; returns the bot message, or None while a request is in flight."""

        if self.is_loading:
            return None
        if not model:
            raise ValueError(_chat_error("Model", "no model selected", "choose a local model before asking"))
        text = (question or "").strip()
        if not text:
            raise ValueError(_chat_error("Question", "question is empty", "type a question about the data"))

        self.messages.append(ChatMessage(role="user", content=text))
        prompt = build_sql_prompt(self.schema_context, text)
        self.is_loading = True
        try:
            content = self.generate_sql(model, prompt)
        finally:
            self.is_loading = False

        bot_message = ChatMessage(role="bot", content=content, mark="sql")
        self.messages.append(bot_message)
        return bot_message

    def run_message_sql(self, index: int, *, now: datetime | None = None) -> list[dict[str, Any]] | None:
        """Run the SQL of message ``index`` and attach normalized rows to it."""

        if self.is_running_sql:
            return None
        if index < 0 or index >= len(self.messages):
            raise ValueError(_chat_error("Run SQL", f"message {index} does not exist", "choose a generated SQL message"))
        message = self.messages[index]
        if message.mark != "sql":
            raise ValueError(_chat_error("Run SQL", "message does not contain generated SQL", "run a bot SQL message"))

        sql = strip_sql_fence(message.content)
        self.is_running_sql = True
        try:
            rows = normalize_result_rows(self.run_sql(sql), now=now)
        except ValueError as exc:
            logger.warning("SQL run failed for message %d: %s", index, exc)
            stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
            rows = [{"error": str(exc), "timestamp": stamp}]
        finally:
            self.is_running_sql = False

        self.messages[index] = replace(message, sql_result=rows)
        return rows

    def clear(self) -> None:
        self.messages = []
