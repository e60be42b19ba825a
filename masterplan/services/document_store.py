import logging

import psycopg
from psycopg import errors as pg_errors
from psycopg_pool import PoolTimeout

from ..core.errors import ConflictError, InternalError, ValidationError
from ..db import Database

logger = logging.getLogger(__name__)

TABLE = "masterplandocs"

COLUMNS = (
    "id", "doc_id", "doc_type", "doc_title", "revision_no", "year", "quarter",
    "owner", "status", "doc_status", "is_uploaded", "uploaded_file", "file_type",
    "file_size", "storage_path", "download_url", "uploaded_at", "created_at", "updated_at",
)
_SELECT = ", ".join(COLUMNS)
_INSERT_COLUMNS = COLUMNS[1:]


class DocumentStore:
    """SQL access to the masterplandocs table."""

    def __init__(self, db: Database):
        self.db = db

    def doc_id_exists(self, doc_id: str) -> bool:
        sql = f"SELECT 1 AS found FROM {TABLE} WHERE doc_id = %(doc_id)s"
        try:
            return self.db.fetch_one(sql, {"doc_id": doc_id}) is not None
        except psycopg.Error as e:
            raise InternalError("Internal server error") from e

    def insert(self, row: dict) -> dict:
        cols = ", ".join(_INSERT_COLUMNS)
        values = ", ".join(f"%({c})s" for c in _INSERT_COLUMNS)
        sql = f"""
        INSERT INTO {TABLE} ({cols})
        VALUES ({values})
        RETURNING {_SELECT}
        """
        params = {c: row.get(c) for c in _INSERT_COLUMNS}
        try:
            return self.db.fetch_one(sql, params)
        except pg_errors.UniqueViolation as e:
            logger.warning(f"doc_id {row.get('doc_id')!r} lost the unique constraint race")
            raise ConflictError("Document ID already exists in database") from e
        except psycopg.DataError as e:
            logger.warning(f"insert rejected by the database: {e}")
            raise ValidationError("Database error - check field types and constraints") from e
        except psycopg.Error as e:
            logger.error(f"✗ insert into {TABLE} failed: {e}", exc_info=True)
            raise InternalError("Internal server error while saving to database") from e

    def list_all(self) -> list[dict]:
        sql = f"""
        SELECT {_SELECT}
        FROM {TABLE}
        ORDER BY created_at DESC, id DESC
        """
        try:
            return self.db.fetch_all(sql)
        except psycopg.Error as e:
            raise InternalError("Internal server error") from e

    def get(self, id: int) -> dict | None:
        sql = f"""
        SELECT {_SELECT}
        FROM {TABLE}
        WHERE id = %(id)s
        """
        try:
            return self.db.fetch_one(sql, {"id": id})
        except psycopg.Error as e:
            raise InternalError("Internal server error") from e

    def ping(self) -> None:
        try:
            self.db.ping()
        except (psycopg.Error, PoolTimeout) as e:
            raise InternalError(str(e)) from e
