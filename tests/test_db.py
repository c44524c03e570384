# tests/test_db.py
from sqlalchemy.pool import StaticPool
from app import db as db_module


def test_postgres_engine_sets_statement_timeout():
    options = db_module.engine_options("postgresql+psycopg2://user:pw@localhost/inventory")
    assert options["connect_args"] == {"options": "-c statement_timeout=60000"}
    assert options["pool_pre_ping"] is True
    assert options["pool_size"] == 5
    assert options["max_overflow"] == 10


def test_postgres_statement_timeout_follows_setting(monkeypatch):
    monkeypatch.setattr(db_module, "DB_STATEMENT_TIMEOUT_MS", 1500)
    options = db_module.engine_options("postgresql+psycopg2://localhost/inventory")
    assert options["connect_args"]["options"] == "-c statement_timeout=1500"


def test_sqlite_engine_shares_one_connection():
    options = db_module.engine_options("sqlite:///:memory:")
    assert options["poolclass"] is StaticPool
    assert options["connect_args"] == {"check_same_thread": False}
