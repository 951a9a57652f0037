from __future__ import annotations

import json
import logging

from schemachat.mysql_gateway import ConnectionConfig
from schemachat.schema_model import SchemaSnapshot, snapshot_from_dict, snapshot_to_dict

logger = logging.getLogger("snapshot_store")

SCHEMA_CONTEXT_KEY = "allCreateSQL"
CONNECTION_CONFIG_KEY = "dbConnectionConfig"


def snapshot_key(database: str) -> str:
    return f"db_{database}_structures"


class SnapshotCache:
    """
    Process-local key/value store of JSON text for the current session.

    Mirrors browser local storage: nothing is written to disk and the cache
    is gone when the application exits.
    """

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def keys(self) -> list[str]:
        return list(self._items.keys())

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear_schema_data(self) -> None:
        """Drop cached snapshots and schema context; keep the connection config."""

        removed = [key for key in self._items if key.startswith("db_") or key == SCHEMA_CONTEXT_KEY]
        for key in removed:
            del self._items[key]
        logger.debug("Cleared %d cached schema entries", len(removed))

    def save_snapshot(self, snapshot: SchemaSnapshot) -> None:
        self.set_item(snapshot_key(snapshot.database), json.dumps(snapshot_to_dict(snapshot)))

    def load_snapshot(self, database: str) -> SchemaSnapshot | None:
        raw = self.get_item(snapshot_key(database))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(
                f"Schema cache / {database}: cached snapshot is not valid JSON ({exc}). "
                "Fix: learn the database schema again."
            ) from exc
        return snapshot_from_dict(data)

    def save_schema_context(self, context: str) -> None:
        self.set_item(SCHEMA_CONTEXT_KEY, context)

    def load_schema_context(self) -> str:
        return self.get_item(SCHEMA_CONTEXT_KEY) or ""

    def save_connection_config(self, config: ConnectionConfig) -> None:
        # password is kept in memory only by the caller, never cached
        self.set_item(CONNECTION_CONFIG_KEY, json.dumps(config.redacted()))

    def load_connection_config(self) -> dict[str, object] | None:
        raw = self.get_item(CONNECTION_CONFIG_KEY)
        return None if raw is None else json.loads(raw)
