"""Database backends for the issue repository

Two interchangeable backends, selected by configuration and never used
together:

- SqliteDatabase: embedded file store, pooled sqlite3 connections (WAL)
- PostgresDatabase: networked server, psycopg_pool.ConnectionPool

Both hand out a DatabaseSession inside transaction(). Repository SQL is
written once with ``?`` placeholders; the session rewrites them for the
PostgreSQL driver. Rows come back as plain dicts on both backends.

The database object is built once at startup (create_database()) and
passed to the repository and schema code; there is no module-level
connection singleton.
"""

from __future__ import annotations

import atexit
import random
import sqlite3
import time
from collections.abc import Callable, Generator, Sequence
from contextlib import AbstractContextManager, contextmanager
from functools import wraps
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, Literal, Protocol, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from dailybrief import config
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, log_event

F = TypeVar("F", bound=Callable[..., Any])

Dialect = Literal["sqlite", "postgres"]

logger = get_logger(__name__)

DRIVER_ERRORS: tuple[type[Exception], ...] = (sqlite3.Error, psycopg.Error)


class RepositoryError(RuntimeError):
    """Storage unreachable, constraint violated, or any other driver failure."""


class SchemaMigrationError(RepositoryError):
    """Schema could not be created or migrated; fatal at startup."""


def retry_on_db_lock(
    max_retries: int = config.DB_RETRY_MAX,
    base_delay: float = config.DB_RETRY_BASE_DELAY,
    max_delay: float = config.DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Decorator to retry database operations on SQLITE_BUSY errors

    SQLite can return "database is locked" errors during concurrent access.
    This decorator implements exponential backoff with jitter to resolve
    transient lock contention. Other errors are re-raised immediately.

    Side Effects:
        - Retries wrapped function up to max_retries times on database lock errors
        - Sleeps between retries (exponential backoff with jitter)
        - Logs warning messages for each retry attempt
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except sqlite3.OperationalError as e:
                    message = str(e).lower()
                    if "locked" not in message and "busy" not in message:
                        raise

                    if attempt >= max_retries:
                        logger.error("Database lock retry exhausted after %d attempts: %s", max_retries, e)
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    sleep_time = delay + random.uniform(0, delay * config.DB_RETRY_JITTER)
                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        sleep_time,
                        e,
                    )
                    time.sleep(sleep_time)

            raise RuntimeError("Unexpected exit from retry loop")

        return wrapper  # type: ignore[return-value]

    return decorator


def db_operation(label: str) -> Callable[[F], F]:
    """
    Decorator for repository methods: lock retry plus error translation.

    Driver exceptions leave the wrapped method as RepositoryError, with the
    original exception chained.
    """

    def decorator(func: F) -> F:
        retried = retry_on_db_lock()(func)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return retried(*args, **kwargs)
            except RepositoryError:
                raise
            except DRIVER_ERRORS as e:
                counter("repository.errors")
                logger.error("Repository operation '%s' failed: %s", label, e)
                raise RepositoryError(f"{label} failed: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


class DatabaseSession:
    """Thin cursor wrapper with one placeholder style and dict rows."""

    def __init__(self, cursor: Any, dialect: Dialect) -> None:
        self._cursor = cursor
        self.dialect = dialect

    def _sql(self, sql: str) -> str:
        return sql.replace("?", "%s") if self.dialect == "postgres" else sql

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        self._cursor.execute(self._sql(sql), tuple(params))
        return self._cursor.rowcount

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        self._cursor.execute(self._sql(sql), tuple(params))
        row = self._cursor.fetchone()
        return dict(row) if row is not None else None

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        self._cursor.execute(self._sql(sql), tuple(params))
        return [dict(row) for row in self._cursor.fetchall()]


class Database(Protocol):
    dialect: Dialect

    def transaction(self) -> AbstractContextManager[DatabaseSession]: ...

    def close(self) -> None: ...

    def describe(self) -> str: ...

    def stats(self) -> dict[str, Any]: ...


class DatabaseConnectionPool:
    """
    Thread-safe connection pool for SQLite

    Maintains a pool of reusable database connections. Connections run in
    autocommit mode (isolation_level=None); DatabaseSession transactions
    issue BEGIN/COMMIT explicitly so DDL is transactional too.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = config.DB_POOL_SIZE,
        pool_timeout: float = config.DB_POOL_TIMEOUT,
        connect_timeout: float = config.DB_CONNECT_TIMEOUT,
        temp_conn_max: int = 10,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.connect_timeout = connect_timeout
        self.pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self.lock = Lock()
        self.closed = False
        self.temp_conn_count = 0
        self.temp_conn_max = temp_conn_max
        self._temporary: set[int] = set()
        self._initialize_pool()

        atexit.register(self.close_all)

    def _create_connection(self) -> sqlite3.Connection:
        """
        Create optimized SQLite connection

        Side Effects:
            - Opens database connection (creates the file if missing)
            - Executes PRAGMA statements (quick_check, journal_mode, synchronous)

        Raises:
            RepositoryError: If database corruption is detected
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.connect_timeout,
            check_same_thread=False,
            isolation_level=None,
        )

        try:
            result = conn.execute("PRAGMA quick_check(1)").fetchone()
        except sqlite3.DatabaseError as e:
            conn.close()
            logger.critical("Database corruption or error during integrity check: %s", e)
            counter("database.corruption_detected")
            raise RepositoryError(f"Database corruption detected: {e}") from e
        if result[0] != "ok":
            conn.close()
            logger.critical("Database corruption detected: %s", result[0])
            counter("database.corruption_detected")
            raise RepositoryError(f"Database corruption detected: {result[0]}")

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_pool(self) -> None:
        for _ in range(self.pool_size):
            try:
                self.pool.put(self._create_connection())
            except (sqlite3.Error, RepositoryError) as e:
                logger.warning("Failed to create pooled connection: %s", e)

    def get_connection(self) -> sqlite3.Connection:
        """
        Get connection from pool (or a temporary one if the pool is exhausted)

        Raises:
            RepositoryError: If pool closed or temporary connection limit exceeded
        """
        if self.closed:
            raise RepositoryError("Connection pool has been closed")

        try:
            return self.pool.get(block=True, timeout=self.pool_timeout)
        except Empty:
            with self.lock:
                if self.temp_conn_count >= self.temp_conn_max:
                    logger.critical(
                        "Temporary connection limit reached: %d/%d (pool_size=%d)",
                        self.temp_conn_count,
                        self.temp_conn_max,
                        self.pool_size,
                    )
                    raise RepositoryError(
                        "Database connection pool exhausted and temporary connection limit reached"
                    ) from None
                self.temp_conn_count += 1
                temp_count = self.temp_conn_count

            logger.error(
                "Connection pool exhausted (pool_size=%d). Creating temporary connection %d/%d.",
                self.pool_size,
                temp_count,
                self.temp_conn_max,
            )
            log_event("database.pool_exhausted", pool_size=self.pool_size, temp_conn_count=temp_count)

            conn = self._create_connection()
            with self.lock:
                self._temporary.add(id(conn))
            return conn

    def return_connection(self, conn: sqlite3.Connection) -> None:
        with self.lock:
            is_temp = id(conn) in self._temporary
            self._temporary.discard(id(conn))

        if self.closed or is_temp:
            conn.close()
            if is_temp:
                with self.lock:
                    self.temp_conn_count -= 1
            return

        try:
            self.pool.put_nowait(conn)
        except Full:
            logger.warning("Failed to return connection to pool (pool full), closing")
            conn.close()

    def close_all(self) -> None:
        self.closed = True
        while not self.pool.empty():
            try:
                self.pool.get_nowait().close()
            except Empty:
                break

    def stats(self) -> dict[str, Any]:
        available = self.pool.qsize()
        in_use = self.pool_size - available
        return {
            "pool_size": self.pool_size,
            "available": available,
            "in_use": in_use,
            "usage_percent": round((in_use / self.pool_size) * 100, 1) if self.pool_size else 0,
            "closed": self.closed,
        }


class SqliteDatabase:
    """Embedded backend: one SQLite file, pooled connections."""

    dialect: Dialect = "sqlite"

    def __init__(self, db_path: Path | str = config.DB_PATH, pool_size: int = config.DB_POOL_SIZE) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.pool = DatabaseConnectionPool(self.db_path, pool_size=pool_size)

    @contextmanager
    def transaction(self) -> Generator[DatabaseSession, None, None]:
        """
        Run the block in one transaction on a pooled connection.

        Commits on success, rolls back on error.
        """
        conn = self.pool.get_connection()
        try:
            conn.execute("BEGIN")
            try:
                yield DatabaseSession(conn.cursor(), self.dialect)
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        finally:
            self.pool.return_connection(conn)

    def close(self) -> None:
        self.pool.close_all()

    def describe(self) -> str:
        return f"sqlite:{self.db_path}"

    def stats(self) -> dict[str, Any]:
        return self.pool.stats()


class PostgresDatabase:
    """Networked backend: PostgreSQL through a psycopg connection pool."""

    dialect: Dialect = "postgres"

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = config.DB_POOL_SIZE,
        timeout: float = config.DB_POOL_TIMEOUT,
    ) -> None:
        self.dsn = dsn
        try:
            self.pool = ConnectionPool(
                dsn,
                min_size=min_size,
                max_size=max(min_size, max_size),
                timeout=timeout,
                max_idle=300,
                kwargs={"row_factory": dict_row, "connect_timeout": int(config.DB_CONNECT_TIMEOUT)},
                open=True,
            )
        except psycopg.Error as e:
            raise RepositoryError(f"Cannot open PostgreSQL pool: {e}") from e

    @contextmanager
    def transaction(self) -> Generator[DatabaseSession, None, None]:
        # pool.connection() commits on clean exit and rolls back on error
        with self.pool.connection() as conn, conn.cursor() as cur:
            yield DatabaseSession(cur, self.dialect)

    def close(self) -> None:
        self.pool.close()
        logger.info("Database connection pool closed")

    def describe(self) -> str:
        return "postgres"

    def stats(self) -> dict[str, Any]:
        return dict(self.pool.get_stats())


def create_database(
    database_url: str | None = None,
    db_path: Path | str | None = None,
) -> SqliteDatabase | PostgresDatabase:
    """
    Build the configured backend.

    DATABASE_URL selects PostgreSQL; otherwise the SQLite file at
    DAILYBRIEF_DB_PATH is used.

    Side Effects:
        - Opens database connections (pool warm-up)
    """
    url = config.DATABASE_URL if database_url is None else database_url
    if url:
        logger.info("Using PostgreSQL backend")
        return PostgresDatabase(url)

    path = Path(db_path) if db_path is not None else config.DB_PATH
    logger.info("Using SQLite backend: %s", path)
    return SqliteDatabase(path)
