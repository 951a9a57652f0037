from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FieldReference:
    table: str
    field: str


@dataclass(frozen=True)
class TableField:
    name: str
    type: str
    is_primary: bool = False
    is_foreign: bool = False
    # set only when is_foreign
    references: FieldReference | None = None


@dataclass(frozen=True)
class TableStructure:
    name: str
    fields: list[TableField] = field(default_factory=list)


@dataclass(frozen=True)
class TableRelation:
    # source holds the foreign key, target is the referenced table
    source: str
    target: str
    source_field: str
    target_field: str
    is_fk: bool = True


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class SchemaSnapshot:
    database: str
    tables: list[TableStructure] = field(default_factory=list)
    relations: list[TableRelation] = field(default_factory=list)
    created_at: str = ""

    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


def _field_to_dict(table_field: TableField) -> dict[str, Any]:
    out: dict[str, Any] = {
        "name": table_field.name,
        "type": table_field.type,
        "isPrimary": table_field.is_primary,
        "isForeign": table_field.is_foreign,
    }
    if table_field.references is not None:
        out["references"] = {
            "table": table_field.references.table,
            "field": table_field.references.field,
        }
    return out


def _field_from_dict(data: dict[str, Any]) -> TableField:
    ref_data = data.get("references")
    references = None
    if isinstance(ref_data, dict):
        references = FieldReference(table=str(ref_data["table"]), field=str(ref_data["field"]))
    return TableField(
        name=str(data["name"]),
        type=str(data.get("type", "")),
        is_primary=bool(data.get("isPrimary", False)),
        is_foreign=bool(data.get("isForeign", False)),
        references=references,
    )


def snapshot_to_dict(snapshot: SchemaSnapshot) -> dict[str, Any]:
    return {
        "timestamp": snapshot.created_at,
        "database": snapshot.database,
        "tables": [
            {"name": table.name, "fields": [_field_to_dict(f) for f in table.fields]}
            for table in snapshot.tables
        ],
        "relations": [
            {
                "source": rel.source,
                "target": rel.target,
                "sourceField": rel.source_field,
                "targetField": rel.target_field,
                "isFK": rel.is_fk,
            }
            for rel in snapshot.relations
        ],
    }


def snapshot_from_dict(data: dict[str, Any]) -> SchemaSnapshot:
    try:
        tables = [
            TableStructure(
                name=str(table["name"]),
                fields=[_field_from_dict(f) for f in table.get("fields", [])],
            )
            for table in data.get("tables", [])
        ]
        relations = [
            TableRelation(
                source=str(rel["source"]),
                target=str(rel["target"]),
                source_field=str(rel["sourceField"]),
                target_field=str(rel["targetField"]),
                is_fk=bool(rel.get("isFK", False)),
            )
            for rel in data.get("relations", [])
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(
            "Schema snapshot: cached snapshot is malformed "
            f"({exc}). Fix: learn the database schema again."
        ) from exc
    return SchemaSnapshot(
        database=str(data.get("database", "")),
        tables=tables,
        relations=relations,
        created_at=str(data.get("timestamp", "")),
    )
