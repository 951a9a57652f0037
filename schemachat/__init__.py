"""Chat-to-SQL desktop assistant with schema diagram rendering."""
