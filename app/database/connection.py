import logging
import os
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from psycopg2.extensions import connection as PGConnection
from psycopg2.pool import ThreadedConnectionPool

logger = logging.getLogger(__name__)


def dsn_from_env() -> str:
    """ libpq connection string built from the DB_* environment variables """
    host = os.getenv("DB_HOST", "localhost")
    port = int(os.getenv("DB_PORT", "5432"))
    name = os.getenv("DB_NAME")
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASSWORD")
    sslmode = os.getenv("DB_SSLMODE")

    missing = [k for k, v in {
        "DB_NAME": name, "DB_USER": user, "DB_PASSWORD": password
    }.items() if not v]
    if missing:
        raise RuntimeError(f"Missing env vars: {', '.join(missing)}")

    dsn = f"host={host} port={port} dbname={name} user={user} password={password}"
    if sslmode:
        dsn += f" sslmode={sslmode}"

    logger.info(f"Using PostgreSQL at {host}:{port}/{name}")
    return dsn


class PostgresPool:
    """
    A thread-safe pool of PostgreSQL connections.

    Constructed once at application startup and handed to request handlers
    through the ``get_db`` dependency.
    """

    def __init__(self, dsn: str, min_connections: int = 1, max_connections: int = 10):
        self._pool = ThreadedConnectionPool(min_connections, max_connections, dsn)

    @classmethod
    def from_env(cls) -> "PostgresPool":
        return cls(
            dsn_from_env(),
            min_connections=int(os.getenv("DB_POOL_MIN", "1")),
            max_connections=int(os.getenv("DB_POOL_MAX", "10")),
        )

    @contextmanager
    def connection(self) -> Iterator[PGConnection]:
        conn = self._pool.getconn()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        self._pool.closeall()


def get_db(request: Request) -> Iterator[PGConnection]:
    """ FastAPI dependency yielding a pooled connection for the request """
    with request.app.state.db.connection() as conn:
        yield conn
