from sqlalchemy.exc import DataError, IntegrityError, NoResultFound, OperationalError

from venue_crm.errors import translate_db_error


def integrity_error(message):
    return IntegrityError("INSERT ...", {}, Exception(message))


class PgError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


class TestTranslateDbError:
    def test_sqlite_unique_violation(self):
        error = translate_db_error(integrity_error("UNIQUE constraint failed: users.email"))
        assert error.status_code == 409
        assert error.code == "CONFLICT"
        assert error.field == "email"
        assert error.details == {"field": "email", "constraint": "unique"}

    def test_postgres_unique_violation(self):
        error = translate_db_error(
            integrity_error(
                'duplicate key value violates unique constraint "ix_users_email"\n'
                "DETAIL:  Key (email)=(a@b.test) already exists."
            )
        )
        assert error.status_code == 409
        assert error.field == "email"

    def test_foreign_key_violation(self):
        error = translate_db_error(integrity_error("FOREIGN KEY constraint failed"))
        assert error.status_code == 400
        assert error.details == {"constraint": "foreign_key"}

    def test_not_null_violation(self):
        error = translate_db_error(integrity_error("NOT NULL constraint failed: clients.name"))
        assert error.status_code == 400
        assert error.details == {"constraint": "required_relation"}

    def test_missing_row(self):
        error = translate_db_error(NoResultFound())
        assert error.status_code == 404
        assert error.code == "NOT_FOUND"

    def test_anything_else_is_internal(self):
        error = translate_db_error(OperationalError("SELECT 1", {}, Exception("disk I/O error")))
        assert error.status_code == 500
        assert error.message == "Database operation failed"

    def test_numeric_overflow_is_bad_request(self):
        error = translate_db_error(
            DataError("UPDATE proposals ...", {}, PgError("numeric field overflow", "22003"))
        )
        assert error.status_code == 400
        assert error.code == "BAD_REQUEST"
        assert error.details == {"constraint": "numeric_range"}
