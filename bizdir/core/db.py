"""Database helpers for the directory's business and category tables."""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool

from bizdir.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.ThreadedConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.ThreadedConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.ThreadedConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_BUSINESS_COLUMNS = (
    "name",
    "description",
    "address",
    "city",
    "state",
    "zip",
    "phone",
    "email",
    "website",
    "categoryId",
    "latitude",
    "longitude",
    "images",
    "source",
)

_SELECT_BUSINESS = """
SELECT b.*, c.name AS "categoryName"
FROM "Business" b
LEFT JOIN "Category" c ON c.id = b."categoryId"
"""

_INSERT_BUSINESS = """
INSERT INTO "Business" (
    id,
    {columns},
    "createdAt",
    "updatedAt"
) VALUES (
    %(id)s,
    {placeholders},
    NOW(),
    NOW()
)
RETURNING *;
""".format(
    columns=",\n    ".join(f'"{column}"' for column in _BUSINESS_COLUMNS),
    placeholders=",\n    ".join(f"%({column})s" for column in _BUSINESS_COLUMNS),
)


def _prepare_params(record: Dict[str, Any]) -> Dict[str, Any]:
    params = {column: record.get(column) for column in _BUSINESS_COLUMNS}
    params["images"] = list(record.get("images") or [])
    params["id"] = record.get("id") or uuid.uuid4().hex
    return params


class PostgresBusinessStore:
    """Persistence operations the ingestion pipeline needs, backed by the shared pool."""

    def _fetch_one(self, sql: str, params: Any) -> Optional[Dict[str, Any]]:
        with get_connection() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
        return dict(row) if row else None

    def _fetch_all(self, sql: str, params: Any = None) -> List[Dict[str, Any]]:
        with get_connection() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        return [dict(row) for row in rows]

    def find_business_by_name_and_address(self, name: str, address_fragment: str) -> Optional[Dict[str, Any]]:
        sql = _SELECT_BUSINESS + "WHERE LOWER(b.name) = LOWER(%s) AND b.address ILIKE %s LIMIT 1"
        return self._fetch_one(sql, (name, f"%{escape_like(address_fragment)}%"))

    def find_businesses_with_website(self) -> List[Dict[str, Any]]:
        return self._fetch_all(_SELECT_BUSINESS + "WHERE b.website IS NOT NULL")

    def find_businesses_with_phone(self) -> List[Dict[str, Any]]:
        return self._fetch_all(_SELECT_BUSINESS + "WHERE b.phone IS NOT NULL")

    def find_business_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one(_SELECT_BUSINESS + "WHERE LOWER(b.name) = LOWER(%s) LIMIT 1", (name,))

    def find_first_category_alphabetically(self) -> Optional[Dict[str, Any]]:
        return self._fetch_one('SELECT * FROM "Category" ORDER BY name ASC LIMIT 1', None)

    def create_business(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one business and return the stored row."""
        params = _prepare_params(record)
        if not params["name"] or not params["address"]:
            raise ValueError("name and address are required to create a business")
        if not params["categoryId"]:
            raise ValueError("categoryId is required to create a business")

        with get_connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(_INSERT_BUSINESS, params)
                    row = cur.fetchone()
                conn.commit()
            except psycopg2.Error:
                conn.rollback()
                raise
        logger.debug("Created business %s (%s)", params["name"], params["id"])
        return dict(row)
