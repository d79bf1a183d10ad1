import logging
import random
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS candidates (
    position INTEGER PRIMARY KEY,
    candidate_id TEXT NOT NULL UNIQUE,
    candidate_name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ballots (
    position INTEGER PRIMARY KEY,
    ballot_id TEXT,
    rank_1 TEXT,
    rank_2 TEXT,
    rank_3 TEXT
);
"""


class DatabaseConnectionManager:
    """
    Opens DuckDB connections with retry logic and proper cleanup.
    Read-only connections are used for existing files to avoid lock conflicts.
    """

    def get_connection(
        self, db_path: str, read_only: bool = True, max_retries: int = 3
    ) -> duckdb.DuckDBPyConnection:
        """
        Get a database connection, retrying while another process holds the lock.

        Args:
            db_path: Path to DuckDB file or ":memory:"
            read_only: Whether to open in read-only mode (avoids locks)
            max_retries: Maximum number of connection attempts

        Returns:
            DuckDB connection
        """
        for attempt in range(max_retries):
            try:
                if read_only and db_path != ":memory:" and Path(db_path).exists():
                    conn = duckdb.connect(db_path, read_only=True)
                    logger.debug(f"Opened read-only connection to {db_path}")
                else:
                    conn = duckdb.connect(db_path)
                    logger.debug(f"Opened read-write connection to {db_path}")

                return conn

            except duckdb.IOException as e:
                if "Conflicting lock" in str(e) and attempt < max_retries - 1:
                    # Exponential backoff with jitter
                    wait_time = (2**attempt) + random.uniform(0, 1)  # nosec B311
                    logger.warning(
                        f"Database locked, retrying in {wait_time:.2f}s (attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(wait_time)
                    continue
                logger.error(
                    f"Failed to connect to database after {attempt + 1} attempts: {e}"
                )
                raise

        raise duckdb.IOException(
            f"Could not establish database connection after {max_retries} attempts"
        )


# Global connection manager instance
_connection_manager = DatabaseConnectionManager()


class ElectionDatabase:
    """
    DuckDB store for candidate and ballot records.

    Candidates and ballots carry an explicit ``position`` column so that
    reads return them in the order they were written.
    """

    def __init__(self, db_path: Optional[str] = None, read_only: bool = True):
        """
        Initialize database connection manager.

        Args:
            db_path: Path to DuckDB file. If None, uses in-memory database.
            read_only: Whether to open existing files read-only
        """
        self.db_path = str(db_path) if db_path is not None else ":memory:"
        self.read_only = read_only
        self._conn = None  # Will be created on-demand

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create a database connection on-demand."""
        if self._conn is None:
            self._conn = _connection_manager.get_connection(
                self.db_path, self.read_only
            )
        return self._conn

    def create_schema(self):
        """Create the candidates and ballots tables if they do not exist."""
        self.conn.execute(SCHEMA_SQL)
        logger.info(f"Ensured election schema in {self.db_path}")

    def query(self, sql: str, params: Optional[Sequence] = None) -> pd.DataFrame:
        """
        Execute a SQL query and return results as DataFrame.

        Args:
            sql: SQL query to execute
            params: Optional positional parameters for ``?`` placeholders
        """
        if params is None:
            return self.conn.execute(sql).fetchdf()
        return self.conn.execute(sql, list(params)).fetchdf()

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the database."""
        sql = "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?"
        result = self.conn.execute(sql, [table_name]).fetchone()
        return result[0] > 0

    def write_candidates(self, candidates: Iterable[Tuple[str, str]]) -> int:
        """
        Append candidates after any already stored.

        Returns:
            Number of rows written
        """
        start = self._next_position("candidates")
        rows = [
            (start + offset, candidate_id, name)
            for offset, (candidate_id, name) in enumerate(candidates)
        ]
        if rows:
            self.conn.executemany(
                "INSERT INTO candidates (position, candidate_id, candidate_name) VALUES (?, ?, ?)",
                rows,
            )
        logger.info(f"Wrote {len(rows)} candidates to {self.db_path}")
        return len(rows)

    def write_ballots(self, rankings: Iterable[Sequence[str]]) -> int:
        """
        Append ballots after any already stored.

        Rankings shorter than three are padded with NULL; longer rankings
        cannot be represented and raise ValueError.

        Returns:
            Number of rows written
        """
        start = self._next_position("ballots")
        rows = []
        for offset, ranking in enumerate(rankings):
            ranking = list(ranking)
            if len(ranking) > 3:
                raise ValueError(f"Cannot store a ranking of {len(ranking)} entries")
            ranking += [None] * (3 - len(ranking))
            position = start + offset
            rows.append((position, f"B{position + 1:06d}", *ranking))

        if rows:
            self.conn.executemany(
                "INSERT INTO ballots (position, ballot_id, rank_1, rank_2, rank_3) VALUES (?, ?, ?, ?, ?)",
                rows,
            )
        logger.info(f"Wrote {len(rows)} ballots to {self.db_path}")
        return len(rows)

    def _next_position(self, table_name: str) -> int:
        result = self.conn.execute(
            f"SELECT COALESCE(MAX(position) + 1, 0) FROM {table_name}"
        ).fetchone()
        return int(result[0])

    def close(self):
        """Close database connection."""
        if self._conn:
            try:
                self._conn.close()
                logger.debug(f"Closed database connection to {self.db_path}")
            except duckdb.Error as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
