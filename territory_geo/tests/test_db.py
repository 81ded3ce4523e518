"""
Tests for the query functions in db.py.
The pool is replaced with a fake connection that records every statement.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager

import pytest

from territory_geo import db
from territory_geo.cascade import CONFIDENCE


class FakeConnection:
    def __init__(self):
        self.executed: list[tuple[str, tuple]] = []

    async def execute(self, query, *args):
        self.executed.append((query, args))
        return "UPDATE 1"


@pytest.fixture
def conn(monkeypatch):
    fake = FakeConnection()

    @asynccontextmanager
    async def get_connection():
        yield fake

    monkeypatch.setattr(db, "get_connection", get_connection)
    return fake


class TestCorrectAssignment:
    def test_confidence_reset_to_coordinates(self, conn):
        asyncio.run(db.correct_assignment("10", "Florida", "Corrected from Ohio by coordinates"))
        query, args = conn.executed[-1]
        assert "assignment_confidence = $4" in query
        assert args == (
            10,
            "Florida",
            json.dumps(["Corrected from Ohio by coordinates"]),
            CONFIDENCE["coordinates"],
        )


class TestClearAssignment:
    def test_confidence_cleared(self, conn):
        asyncio.run(db.clear_assignment("11", "international"))
        query, args = conn.executed[-1]
        assert "assignment_confidence = NULL" in query
        assert args[0] == 11
