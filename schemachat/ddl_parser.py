"""Parse MySQL ``SHOW CREATE TABLE`` output into table/field/foreign-key models.

The grammar handled here is deliberately small: a definition block is split
into top-level clauses (commas inside parentheses or quotes do not split), and
each clause is classified as a table-level key, a foreign key, a named
constraint, or a column definition. Anything unrecognized is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re

from schemachat.schema_model import FieldReference, TableField, TableRelation, TableStructure

logger = logging.getLogger("ddl_parser")

_IDENT = r'(?:`(?:[^`]|``)+`|"[^"]+"|[A-Za-z_$][\w$]*)'
_QUALIFIED_IDENT = rf"{_IDENT}(?:\s*\.\s*{_IDENT})?"

_CREATE_TABLE_RE = re.compile(
    rf"CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?({_QUALIFIED_IDENT})",
    re.IGNORECASE,
)
_PRIMARY_KEY_RE = re.compile(r"PRIMARY\s+KEY\s*(?:USING\s+\w+\s*)?\(((?:[^()]|\([^()]*\))+)\)", re.IGNORECASE)
_FOREIGN_KEY_RE = re.compile(
    rf"FOREIGN\s+KEY\s*(?:{_IDENT}\s*)?\(([^)]+)\)\s*REFERENCES\s+({_QUALIFIED_IDENT})\s*\(([^)]+)\)",
    re.IGNORECASE,
)
_CONSTRAINT_RE = re.compile(r"\bCONSTRAINT\b", re.IGNORECASE)
_COLUMN_RE = re.compile(
    rf"^({_IDENT})\s+([A-Za-z]\w*)(?:\s*\(([^)]+)\))?(.*)$",
    re.DOTALL,
)
_INLINE_PRIMARY_RE = re.compile(r"primary\s+key", re.IGNORECASE)
_KEY_LENGTH_RE = re.compile(r"\s*\(\s*\d+\s*\)\s*$")
_ORDERING_RE = re.compile(r"\s+(?:ASC|DESC)\s*$", re.IGNORECASE)

# Bare leading words that start an index/key clause rather than a column.
_TABLE_LEVEL_KEYWORDS = frozenset(
    {"PRIMARY", "KEY", "INDEX", "UNIQUE", "FULLTEXT", "SPATIAL", "FOREIGN", "CHECK"}
)


@dataclass(frozen=True)
class ParsedTable:
    table: TableStructure
    relations: list[TableRelation] = field(default_factory=list)


def unquote_identifier(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] == "`":
        return text[1:-1].replace("``", "`")
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


def _last_identifier_part(qualified: str) -> str:
    parts = re.findall(_IDENT, qualified)
    if not parts:
        return unquote_identifier(qualified)
    return unquote_identifier(parts[-1])


def split_clauses(block: str) -> list[str]:
    """Split a definition block on commas at paren depth 0, outside quotes."""

    clauses: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    idx = 0
    while idx < len(block):
        ch = block[idx]
        if quote is not None:
            current.append(ch)
            if ch == "\\" and quote != "`" and idx + 1 < len(block):
                current.append(block[idx + 1])
                idx += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            current.append(ch)
        elif ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth = max(0, depth - 1)
            current.append(ch)
        elif ch == "," and depth == 0:
            clauses.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        idx += 1

    tail = "".join(current).strip()
    if tail:
        clauses.append(tail)
    return [clause for clause in clauses if clause]


def extract_definition_block(create_sql: str) -> str | None:
    """Return the text inside the parenthesized column/constraint block."""

    start = create_sql.find("(")
    if start < 0:
        return None

    depth = 0
    quote: str | None = None
    for idx in range(start, len(create_sql)):
        ch = create_sql[idx]
        if quote is not None:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', "`"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return create_sql[start + 1 : idx]

    # Unbalanced statement: fall back to the last closing paren.
    end = create_sql.rfind(")")
    if end <= start:
        return create_sql[start + 1 :]
    return create_sql[start + 1 : end]


def _column_list(text: str) -> list[str]:
    names: list[str] = []
    for part in split_clauses(text):
        cleaned = _ORDERING_RE.sub("", part)
        cleaned = _KEY_LENGTH_RE.sub("", cleaned)
        name = unquote_identifier(cleaned)
        if name:
            names.append(name)
    return names


def _primary_key_columns(clauses: list[str]) -> list[str]:
    for clause in clauses:
        match = _PRIMARY_KEY_RE.search(clause)
        if match:
            return _column_list(match.group(1))
    return []


def _foreign_key_refs(clauses: list[str]) -> list[tuple[str, str, str]]:
    refs: list[tuple[str, str, str]] = []
    for clause in clauses:
        for match in _FOREIGN_KEY_RE.finditer(clause):
            local_columns = _column_list(match.group(1))
            target_table = _last_identifier_part(match.group(2))
            target_columns = _column_list(match.group(3))
            for local_column, target_column in zip(local_columns, target_columns):
                refs.append((local_column, target_table, target_column))
    return refs


def _is_table_level_clause(clause: str) -> bool:
    first_word = clause.split(None, 1)[0].upper() if clause.split() else ""
    return first_word in _TABLE_LEVEL_KEYWORDS


def _parse_column(
    clause: str,
    *,
    primary_columns: list[str],
    fk_map: dict[str, FieldReference],
) -> TableField | None:
    if _is_table_level_clause(clause):
        return None
    match = _COLUMN_RE.match(clause)
    if match is None:
        return None

    name = unquote_identifier(match.group(1))
    field_type = match.group(2)
    if match.group(3):
        field_type += f"({match.group(3).strip()})"
    attributes = match.group(4) or ""

    reference = fk_map.get(name)
    return TableField(
        name=name,
        type=field_type,
        is_primary=(name in primary_columns) or bool(_INLINE_PRIMARY_RE.search(attributes)),
        is_foreign=reference is not None,
        references=reference,
    )


def parse_create_table(table_name: str, create_sql: str) -> ParsedTable:
    """
    Parse one CREATE TABLE statement for ``table_name``.

    Never raises for unrecognized content: clauses that match no pattern are
    skipped and a statement without a definition block yields zero fields.
    """

    block = extract_definition_block(create_sql or "")
    if block is None:
        logger.warning("No definition block found for table '%s'; parsed with zero fields.", table_name)
        return ParsedTable(table=TableStructure(name=table_name, fields=[]))

    clauses = split_clauses(block)
    primary_columns = _primary_key_columns(clauses)

    fk_map: dict[str, FieldReference] = {}
    relations: list[TableRelation] = []
    for local_column, target_table, target_column in _foreign_key_refs(clauses):
        fk_map[local_column] = FieldReference(table=target_table, field=target_column)
        relations.append(
            TableRelation(
                source=table_name,
                target=target_table,
                source_field=local_column,
                target_field=target_column,
                is_fk=True,
            )
        )

    fields: list[TableField] = []
    seen: set[str] = set()
    for clause in clauses:
        if _CONSTRAINT_RE.search(clause):
            continue
        parsed = _parse_column(clause, primary_columns=primary_columns, fk_map=fk_map)
        if parsed is None or parsed.name in seen:
            continue
        seen.add(parsed.name)
        fields.append(parsed)

    if not fields:
        logger.warning("Table '%s' produced no recognizable fields.", table_name)
    logger.debug(
        "Parsed table '%s': fields=%d primary=%s foreign_keys=%d",
        table_name,
        len(fields),
        primary_columns,
        len(relations),
    )
    return ParsedTable(table=TableStructure(name=table_name, fields=fields), relations=relations)


def table_name_from_statement(create_sql: str) -> str | None:
    match = _CREATE_TABLE_RE.search(create_sql or "")
    if match is None:
        return None
    return _last_identifier_part(match.group(1))


def parse_create_statements(statements: list[str]) -> list[ParsedTable]:
    """Parse free-standing CREATE TABLE statements, reading names from the DDL."""

    parsed: list[ParsedTable] = []
    for statement in statements:
        table_name = table_name_from_statement(statement)
        if table_name is None:
            logger.warning("Skipping statement without a CREATE TABLE header: %.60s", statement.strip())
            continue
        parsed.append(parse_create_table(table_name, statement))
    return parsed
