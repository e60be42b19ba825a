import logging
from pathlib import Path

from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class Database:
    """Connection pool handle. Constructed explicitly, opened at startup, closed at shutdown."""

    def __init__(self, conninfo: str, min_size: int = 1, max_size: int = 5):
        self.pool = ConnectionPool(
            conninfo=conninfo,
            min_size=min_size,
            max_size=max_size,
            kwargs={"autocommit": True},
            open=False,
        )

    def open(self, timeout: float = 10.0) -> None:
        # raises PoolTimeout when the server is unreachable
        self.pool.open(wait=True, timeout=timeout)

    def close(self) -> None:
        self.pool.close()

    def ping(self) -> None:
        self.fetch_one("SELECT 1 AS ok")

    def fetch_all(self, sql: str, params: dict | None = None) -> list[dict]:
        with self.pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or {})
                cols = [d.name for d in cur.description] if cur.description else []
                rows = cur.fetchall()
                return [dict(zip(cols, r)) for r in rows]

    def fetch_one(self, sql: str, params: dict | None = None) -> dict | None:
        with self.pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or {})
                cols = [d.name for d in cur.description] if cur.description else []
                row = cur.fetchone()
                return dict(zip(cols, row)) if row else None

    def execute(self, sql: str, params: dict | None = None) -> None:
        with self.pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or {})

    def apply_migrations(self) -> list[str]:
        """Run every migrations/*.sql in name order. Scripts must be idempotent."""
        applied = []
        for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
            sql = path.read_text(encoding="utf-8")
            with self.pool.connection() as conn:
                conn.execute(sql)
            applied.append(path.name)
            logger.info(f"✓ migration applied: {path.name}")
        return applied
