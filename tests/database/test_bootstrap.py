from pathlib import Path

from clinic_billing.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splitter_ignores_semicolons_in_quotes_and_comments():
    sql = "-- header; still a comment\nINSERT INTO t VALUES ('a;b');\nSELECT \"x;y\";\nSELECT 1"

    assert list(_iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'SELECT "x;y"',
        "SELECT 1",
    ]


def test_schema_creates_every_table():
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))
    statements = list(_iter_sql_statements(sql))

    assert not any(s.upper().startswith(("CREATE DATABASE", "USE ")) for s in statements)
    tables = [s.split()[5] for s in statements]
    assert tables == ["users", "patients", "attendances", "supervisions", "supervision_rates"]
