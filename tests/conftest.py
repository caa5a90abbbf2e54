"""Shared fixtures: throwaway SQLite databases seeded from SQL scripts."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable

import pytest

from randomdraw.datasources.sqlite import SQLiteStore


@pytest.fixture
def make_db(tmp_path: Path) -> Callable[[str], str]:
    """Factory creating a SQLite file from a script and returning its path."""
    counter = {"n": 0}

    def _make(script: str) -> str:
        counter["n"] += 1
        db_path = tmp_path / f"sample_{counter['n']}.db"
        conn = sqlite3.connect(db_path)
        conn.executescript(script)
        conn.commit()
        conn.close()
        return str(db_path)

    return _make


@pytest.fixture
def users_db(make_db) -> str:
    """Five users with contiguous integer ids, plus a view over them."""
    return make_db(
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT,
            age INTEGER,
            salary REAL
        );
        INSERT INTO users (id, name, age, salary) VALUES
            (1, 'Alice', 25, 50000.0),
            (2, 'Bob', 30, 60000.0),
            (3, NULL, 35, 70000.0),
            (4, 'David', NULL, 80000.0),
            (5, 'Eve', 45, 90000.0);
        CREATE VIEW adult_names AS SELECT name, age FROM users WHERE age >= 30;
        """
    )


@pytest.fixture
def users_store(users_db) -> SQLiteStore:
    store = SQLiteStore(users_db)
    yield store
    store.close()


@pytest.fixture
def gapped_store(make_db) -> SQLiteStore:
    """Four rows whose keys {1, 5, 10, 12} leave most of [1, 12] empty."""
    db = make_db(
        """
        CREATE TABLE gapped (id INTEGER PRIMARY KEY, label TEXT);
        INSERT INTO gapped VALUES (1, 'one'), (5, 'five'), (10, 'ten'), (12, 'twelve');
        """
    )
    store = SQLiteStore(db)
    yield store
    store.close()


@pytest.fixture
def words_store(make_db) -> SQLiteStore:
    """Twenty text-only rows with no integer column at all."""
    values = ", ".join(f"('word{i:02d}', 'note {i}')" for i in range(20))
    db = make_db(
        f"""
        CREATE TABLE words (word TEXT, note TEXT);
        INSERT INTO words VALUES {values};
        """
    )
    store = SQLiteStore(db)
    yield store
    store.close()
