from __future__ import annotations

from datetime import datetime
import logging

from schemachat.ddl_parser import ParsedTable, parse_create_table
from schemachat.schema_model import SchemaSnapshot, TableRelation, TableStructure

logger = logging.getLogger("relations")


def extract_relations(parsed_tables: list[ParsedTable]) -> list[TableRelation]:
    """Concatenate relations in table order, then FK declaration order. No dedup."""

    out: list[TableRelation] = []
    for parsed in parsed_tables:
        out.extend(parsed.relations)
    return out


def applicable_relations(
    tables: list[TableStructure],
    relations: list[TableRelation],
) -> list[TableRelation]:
    """Relations whose source and target both exist; dangling edges are dropped."""

    names = {table.name for table in tables}
    kept: list[TableRelation] = []
    for relation in relations:
        if relation.source in names and relation.target in names:
            kept.append(relation)
            continue
        logger.debug(
            "Skipping dangling relation %s.%s -> %s.%s",
            relation.source,
            relation.source_field,
            relation.target,
            relation.target_field,
        )
    return kept


def relation_label(relation: TableRelation) -> str:
    return f"{relation.source_field} → {relation.target_field}"


def build_schema_snapshot(
    database: str,
    sources: list[tuple[str, str]],
    *,
    now: datetime | None = None,
) -> SchemaSnapshot:
    """Parse ``(table_name, create_sql)`` pairs into one immutable snapshot."""

    parsed_tables: list[ParsedTable] = []
    for table_name, create_sql in sources:
        if not create_sql:
            logger.warning("Table '%s' has no CREATE TABLE text; skipped.", table_name)
            continue
        parsed_tables.append(parse_create_table(table_name, create_sql))

    tables = [parsed.table for parsed in parsed_tables]
    relations = extract_relations(parsed_tables)

    dangling = len(relations) - len(applicable_relations(tables, relations))
    if dangling:
        logger.warning(
            "Database '%s': %d relation(s) reference tables outside the snapshot.",
            database,
            dangling,
        )
    logger.info(
        "Built schema snapshot for '%s': tables=%d relations=%d",
        database,
        len(tables),
        len(relations),
    )
    stamp = (now or datetime.now()).isoformat(timespec="seconds")
    return SchemaSnapshot(database=database, tables=tables, relations=relations, created_at=stamp)
