from sqlalchemy import text
from sqlmodel import Session

from asset_checker.database.connection import build_engine
from asset_checker.database.migrations import (
    Migration001_AddItemImplementationDate,
    Migration002_AddInputItemOptions,
    check_migrations,
    run_migrations,
)


def test_fresh_schema_needs_no_migration(engine):
    assert check_migrations(engine) is False
    assert run_migrations(engine) == (0, 2, 0)


def test_missing_tables_are_skipped():
    empty = build_engine("sqlite://")
    with Session(empty) as session:
        assert Migration001_AddItemImplementationDate().check(session) is False
        assert Migration002_AddInputItemOptions().check(session) is False


def test_old_schema_is_detected():
    old = build_engine("sqlite://")
    with Session(old) as session:
        session.execute(text("CREATE TABLE items (id VARCHAR PRIMARY KEY, name VARCHAR)"))
        session.execute(text("CREATE TABLE input_items (id INTEGER PRIMARY KEY, name VARCHAR)"))
        session.commit()

        assert Migration001_AddItemImplementationDate().check(session) is True
        assert Migration002_AddInputItemOptions().check(session) is True
    assert check_migrations(old) is True
