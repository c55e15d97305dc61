"""Tests for the request transaction boundary and its error mapping"""

import sqlite3
import pytest
from unittest.mock import MagicMock
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from planning_gateway.api.errors import is_unique_violation, unit_of_work
from planning_gateway.domain.exceptions import ConflictError, ValidationError


@pytest.fixture
def db() -> MagicMock:
    return MagicMock(spec=Session)


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO monthly_plan ...", {}, orig)


class PgUniqueViolation(Exception):
    pgcode = "23505"


def test_commits_on_success(db: MagicMock):
    with unit_of_work(db, "req-1"):
        pass

    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_unique_violation_is_conflict(db: MagicMock):
    db.commit.side_effect = integrity_error(sqlite3.IntegrityError("UNIQUE constraint failed: monthly_plan.month"))

    with pytest.raises(ConflictError) as exc_info:
        with unit_of_work(db, "req-1"):
            pass

    assert "existing record" in str(exc_info.value)
    db.rollback.assert_called_once()


def test_other_integrity_error_is_validation_error(db: MagicMock):
    db.commit.side_effect = integrity_error(
        sqlite3.IntegrityError("NOT NULL constraint failed: debt_account.interest_rate")
    )

    with pytest.raises(ValidationError) as exc_info:
        with unit_of_work(db, "req-1"):
            pass

    assert "concurrently" not in str(exc_info.value)
    db.rollback.assert_called_once()


def test_stale_write_is_conflict(db: MagicMock):
    with pytest.raises(ConflictError) as exc_info:
        with unit_of_work(db, "req-1"):
            raise StaleDataError("UPDATE statement on table 'debt_account' expected to update 1 row(s); 0 were matched.")

    assert "modified concurrently" in str(exc_info.value)
    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_unexpected_error_is_internal(db: MagicMock):
    with pytest.raises(HTTPException) as exc_info:
        with unit_of_work(db, "req-1"):
            raise RuntimeError("boom")

    assert exc_info.value.status_code == 500
    db.rollback.assert_called_once()


def test_is_unique_violation():
    assert is_unique_violation(integrity_error(PgUniqueViolation("duplicate key value")))
    assert is_unique_violation(integrity_error(sqlite3.IntegrityError("UNIQUE constraint failed: x.y")))
    assert not is_unique_violation(integrity_error(sqlite3.IntegrityError("FOREIGN KEY constraint failed")))
