from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from common.core.exceptions import ConflictError
from common.repositories.base import is_unique_violation, unique_conflict


def _integrity_error(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO t VALUES (?)", {}, orig)


class _PgError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


class TestIsUniqueViolation:
    @pytest.mark.parametrize(
        "orig,expected",
        [
            (_PgError("23505"), True),
            (_PgError("23514"), False),
            (_PgError("23503"), False),
            (Exception("UNIQUE constraint failed: users.email"), True),
            (Exception("CHECK constraint failed: ck_links_single_owner"), False),
            (Exception("FOREIGN KEY constraint failed"), False),
        ],
    )
    def test_classification(self, orig, expected):
        assert is_unique_violation(_integrity_error(orig)) is expected

    def test_pgcode_is_used_when_sqlstate_missing(self):
        orig = SimpleNamespace(pgcode="23505")
        assert is_unique_violation(_integrity_error(orig)) is True


class TestUniqueConflict:
    def test_unique_violation_becomes_conflict(self):
        with pytest.raises(ConflictError) as exc_info:
            with unique_conflict("Already exists", user_id=7):
                raise _integrity_error(_PgError("23505"))

        assert exc_info.value.message == "Already exists"
        assert exc_info.value.context == {"user_id": 7}
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_other_integrity_errors_pass_through(self):
        with pytest.raises(IntegrityError):
            with unique_conflict("Already exists"):
                raise _integrity_error(_PgError("23514"))

    def test_no_error(self):
        with unique_conflict("Already exists"):
            value = 1
        assert value == 1
