import unittest

from schemachat.ddl_parser import (
    extract_definition_block,
    parse_create_statements,
    parse_create_table,
    split_clauses,
    table_name_from_statement,
    unquote_identifier,
)
from schemachat.schema_model import FieldReference, TableRelation

ORDERS_DDL = """CREATE TABLE `orders` (
  `id` int NOT NULL AUTO_INCREMENT,
  `user_id` int NOT NULL,
  `total` decimal(10,2) DEFAULT NULL,
  `status` enum('new','paid','shipped') NOT NULL DEFAULT 'new',
  `created_at` datetime DEFAULT CURRENT_TIMESTAMP,
  PRIMARY KEY (`id`),
  KEY `idx_user` (`user_id`),
  CONSTRAINT `fk_orders_user` FOREIGN KEY (`user_id`) REFERENCES `users` (`id`) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"""


class TestClauseSplitting(unittest.TestCase):
    def test_commas_inside_parens_and_quotes_do_not_split(self):
        clauses = split_clauses("a decimal(10,2), b enum('x,y','z'), c int")
        self.assertEqual(clauses, ["a decimal(10,2)", "b enum('x,y','z')", "c int"])

    def test_definition_block_is_balanced(self):
        block = extract_definition_block("CREATE TABLE t (a decimal(10,2), b int) ENGINE=InnoDB")
        self.assertEqual(block, "a decimal(10,2), b int")

    def test_definition_block_missing_returns_none(self):
        self.assertIsNone(extract_definition_block("CREATE TABLE t"))

    def test_unquote_identifier(self):
        self.assertEqual(unquote_identifier("`user id`"), "user id")
        self.assertEqual(unquote_identifier("`a``b`"), "a`b")
        self.assertEqual(unquote_identifier("plain"), "plain")


class TestParseCreateTable(unittest.TestCase):
    def test_fields_types_and_flags(self):
        parsed = parse_create_table("orders", ORDERS_DDL)
        table = parsed.table

        self.assertEqual(table.name, "orders")
        self.assertEqual(
            [f.name for f in table.fields],
            ["id", "user_id", "total", "status", "created_at"],
            "Index and constraint clauses must not become fields. "
            "Fix: skip KEY/PRIMARY KEY/CONSTRAINT clauses.",
        )
        by_name = {f.name: f for f in table.fields}
        self.assertEqual(by_name["id"].type, "int")
        self.assertEqual(by_name["total"].type, "decimal(10,2)")
        self.assertEqual(by_name["status"].type, "enum('new','paid','shipped')")
        self.assertTrue(by_name["id"].is_primary)
        self.assertFalse(by_name["user_id"].is_primary)

    def test_parsing_is_idempotent(self):
        first = parse_create_table("orders", ORDERS_DDL)
        second = parse_create_table("orders", ORDERS_DDL)
        self.assertEqual(first, second)

    def test_foreign_key_completeness(self):
        parsed = parse_create_table("orders", ORDERS_DDL)

        foreign = [f for f in parsed.table.fields if f.is_foreign]
        self.assertEqual(len(foreign), 1)
        self.assertEqual(foreign[0].name, "user_id")
        self.assertEqual(foreign[0].references, FieldReference(table="users", field="id"))
        self.assertEqual(
            parsed.relations,
            [TableRelation(source="orders", target="users", source_field="user_id", target_field="id", is_fk=True)],
        )

    def test_primary_key_from_table_level_clause_only(self):
        parsed = parse_create_table("t", "CREATE TABLE t (`a` int, `b` int, PRIMARY KEY (`a`))")
        flags = {f.name: f.is_primary for f in parsed.table.fields}
        self.assertEqual(flags, {"a": True, "b": False})

    def test_primary_key_from_inline_attribute_only(self):
        parsed = parse_create_table("t", "CREATE TABLE t (a INT PRIMARY KEY, b INT)")
        flags = {f.name: f.is_primary for f in parsed.table.fields}
        self.assertEqual(flags, {"a": True, "b": False})

    def test_primary_key_paths_combine(self):
        parsed = parse_create_table(
            "t",
            "CREATE TABLE t (a INT PRIMARY KEY, b INT, c INT, PRIMARY KEY (`b`))",
        )
        flags = {f.name: f.is_primary for f in parsed.table.fields}
        self.assertEqual(flags, {"a": True, "b": True, "c": False})

    def test_composite_primary_key_with_prefix_length(self):
        parsed = parse_create_table(
            "t",
            "CREATE TABLE `t` (`a` varchar(100), `b` int, `c` int, PRIMARY KEY (`a`(10),`b`))",
        )
        flags = {f.name: f.is_primary for f in parsed.table.fields}
        self.assertEqual(flags, {"a": True, "b": True, "c": False})

    def test_backticked_and_bare_identifiers_parse_identically(self):
        quoted = parse_create_table(
            "orders",
            "CREATE TABLE `orders` (`id` INT PRIMARY KEY, `user_id` INT, "
            "FOREIGN KEY (`user_id`) REFERENCES `users`(`id`))",
        )
        bare = parse_create_table(
            "orders",
            "CREATE TABLE orders (id INT PRIMARY KEY, user_id INT, "
            "FOREIGN KEY (user_id) REFERENCES users(id))",
        )
        self.assertEqual(quoted, bare)

    def test_composite_foreign_key_yields_one_relation_per_column_pair(self):
        parsed = parse_create_table(
            "line",
            "CREATE TABLE line (order_id INT, shop_id INT, "
            "FOREIGN KEY (order_id, shop_id) REFERENCES orders (id, shop_id))",
        )
        self.assertEqual(
            [(r.source_field, r.target_field) for r in parsed.relations],
            [("order_id", "id"), ("shop_id", "shop_id")],
        )
        self.assertTrue(all(f.is_foreign for f in parsed.table.fields))

    def test_duplicate_field_names_keep_first(self):
        parsed = parse_create_table("t", "CREATE TABLE t (a INT, a VARCHAR(10), b INT)")
        self.assertEqual([(f.name, f.type) for f in parsed.table.fields], [("a", "INT"), ("b", "INT")])

    def test_statement_without_block_yields_empty_table(self):
        with self.assertLogs("ddl_parser", level="WARNING"):
            parsed = parse_create_table("v", "CREATE VIEW v AS SELECT 1")
        self.assertEqual(parsed.table.name, "v")
        self.assertEqual(parsed.table.fields, [])
        self.assertEqual(parsed.relations, [])

    def test_unrecognized_clauses_are_skipped(self):
        parsed = parse_create_table(
            "t",
            "CREATE TABLE t (a INT, CHECK (a > 0), UNIQUE KEY uq_a (a), 42 nonsense, b TEXT)",
        )
        self.assertEqual([f.name for f in parsed.table.fields], ["a", "b"])


class TestParseCreateStatements(unittest.TestCase):
    def test_table_name_read_from_header(self):
        self.assertEqual(table_name_from_statement("CREATE TABLE IF NOT EXISTS `shop`.`items` (id INT)"), "items")
        self.assertIsNone(table_name_from_statement("SELECT 1"))

    def test_statements_without_header_are_skipped(self):
        with self.assertLogs("ddl_parser", level="WARNING"):
            parsed = parse_create_statements(["SELECT 1", "CREATE TABLE a (id INT)"])
        self.assertEqual([p.table.name for p in parsed], ["a"])


if __name__ == "__main__":
    unittest.main()
