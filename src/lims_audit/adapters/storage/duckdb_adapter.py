"""DuckDB Storage Adapter.

This adapter implements the ReferenceTablePort and HistoryPort contracts on
DuckDB, an in-process database. It keeps the reference table directory
(which tables are audited and whether history is kept) and stores History
rows append-only.

Security Impact:
    - History rows are only ever inserted, never updated or deleted
    - Table names come from validated configuration, values are bound
      as query parameters

Architecture:
    - Implements ReferenceTablePort and HistoryPort (Hexagonal Architecture)
    - Isolated from domain core - only depends on ports and models
    - transaction() lets callers make the business write and the audit
      write commit or roll back together
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

import duckdb
from pydantic import ValidationError

from lims_audit.domain.audit_models import History, ReferenceTable
from lims_audit.domain.ports import HistoryPort, ReferenceTablePort, StorageError
from lims_audit.infrastructure.config_manager import DatabaseConfig

logger = logging.getLogger(__name__)


class DuckDBAuditAdapter(ReferenceTablePort, HistoryPort):
    """DuckDB implementation of the audit trail storage ports.

    Parameters:
        db_config: DatabaseConfig from configuration manager (preferred)
        db_path: Path to DuckDB database file (or ':memory:' for in-memory)

    Example Usage:
        ```python
        adapter = DuckDBAuditAdapter(db_path=":memory:")
        adapter.initialize_schema()
        adapter.register_reference_table("sample", keep_history=True)

        service = AuditTrailService(adapter, adapter)
        with adapter.transaction():
            save_sample(sample)
            service.save_new_history(sample, "1", "sample")
        ```
    """

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        db_path: Optional[str] = None
    ):
        """Initialize DuckDB adapter.

        Parameters:
            db_config: DatabaseConfig from configuration manager (preferred)
            db_path: Path to DuckDB database file (or ':memory:' for in-memory)

        Note:
            If both db_config and db_path are provided, db_config takes precedence.
            If neither is provided, defaults to in-memory database.
        """
        try:
            self.db_config = db_config or DatabaseConfig(db_path=db_path)
        except ValidationError as e:
            raise StorageError(
                f"Invalid database configuration: {e}",
                operation="__init__",
                details={"db_path": db_path}
            ) from e
        self.db_path = self.db_config.get_connection_string()
        self.history_table = self.db_config.history_table
        self.directory_table = self.db_config.directory_table
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialized = False

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create DuckDB connection."""
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path)
                logger.info(f"Connected to DuckDB database: {self.db_path}")
            except Exception as e:
                raise StorageError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                ) from e
        return self._connection

    def initialize_schema(self) -> None:
        """Create the reference table directory and history tables.

        Raises:
            StorageError: If the schema cannot be created
        """
        try:
            conn = self._get_connection()

            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.directory_table} (
                    id VARCHAR PRIMARY KEY,
                    table_name VARCHAR NOT NULL UNIQUE,
                    keep_history BOOLEAN
                )
            """)

            # History rows are append-only
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.history_table} (
                    id VARCHAR PRIMARY KEY,
                    reference_id VARCHAR,
                    reference_table VARCHAR NOT NULL,
                    sys_user_id VARCHAR NOT NULL,
                    timestamp TIMESTAMP NOT NULL,
                    activity VARCHAR(1) NOT NULL,
                    changes BLOB
                )
            """)

            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.history_table}_reference "
                f"ON {self.history_table}(reference_table, reference_id)"
            )

            self._initialized = True
            logger.info("Audit schema initialized successfully")
        except StorageError:
            raise
        except Exception as e:
            error_msg = f"Failed to initialize schema: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise StorageError(error_msg, operation="initialize_schema") from e

    def _ensure_schema(self) -> duckdb.DuckDBPyConnection:
        if not self._initialized:
            self.initialize_schema()
        return self._get_connection()

    def register_reference_table(
        self,
        table_name: str,
        keep_history: Optional[bool],
        table_id: Optional[str] = None
    ) -> ReferenceTable:
        """Add or update a reference table directory entry.

        Parameters:
            table_name: Audited table name
            keep_history: Retention flag (None leaves it unconfigured)
            table_id: Identifier to use for a new entry (generated if omitted)

        Returns:
            The stored ReferenceTable
        """
        conn = self._ensure_schema()
        existing = self.get_reference_table_by_name(table_name)
        try:
            if existing is not None:
                conn.execute(
                    f"UPDATE {self.directory_table} SET keep_history = ? WHERE table_name = ?",
                    [keep_history, table_name]
                )
                table_id = existing.id
            else:
                table_id = table_id or str(uuid.uuid4())
                conn.execute(
                    f"INSERT INTO {self.directory_table} (id, table_name, keep_history) VALUES (?, ?, ?)",
                    [table_id, table_name, keep_history]
                )
        except Exception as e:
            raise StorageError(
                f"Failed to register reference table: {str(e)}",
                operation="register_reference_table",
                details={"table_name": table_name}
            ) from e

        logger.debug(f"Registered reference table {table_name} (keep_history={keep_history})")
        return ReferenceTable(id=table_id, table_name=table_name, keep_history=keep_history)

    def get_reference_table_by_name(self, table_name: str) -> Optional[ReferenceTable]:
        """Look up a reference table directory entry by table name."""
        conn = self._ensure_schema()
        try:
            row = conn.execute(
                f"SELECT id, table_name, keep_history FROM {self.directory_table} WHERE table_name = ?",
                [table_name]
            ).fetchone()
        except Exception as e:
            raise StorageError(
                f"Failed to read reference table: {str(e)}",
                operation="get_reference_table_by_name",
                details={"table_name": table_name}
            ) from e

        if row is None:
            return None
        return ReferenceTable(id=row[0], table_name=row[1], keep_history=row[2])

    def insert(self, history: History) -> str:
        """Persist a History row.

        Parameters:
            history: History record to store

        Returns:
            str: The stored row's identifier (history.id, or a generated UUID)

        Raises:
            StorageError: If the row cannot be stored
        """
        conn = self._ensure_schema()
        row = history.to_audit_dict()
        history_id = row['id'] or str(uuid.uuid4())

        try:
            conn.execute(f"""
                INSERT INTO {self.history_table} (
                    id, reference_id, reference_table, sys_user_id,
                    timestamp, activity, changes
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, [
                history_id,
                row['reference_id'],
                row['reference_table'],
                row['sys_user_id'],
                row['timestamp'],
                row['activity'],
                row['changes'],
            ])
        except Exception as e:
            error_msg = f"Failed to insert history: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise StorageError(
                error_msg,
                operation="insert",
                details={"reference_table": row['reference_table']}
            ) from e

        logger.debug(f"Inserted history row {history_id}")
        return history_id

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Run business and audit writes in one transaction.

        Commits on normal exit and rolls back if the block raises.

        Yields:
            The DuckDB connection, for the caller's own statements
        """
        conn = self._ensure_schema()
        conn.begin()
        try:
            yield conn
        except BaseException:
            conn.rollback()
            logger.warning("Rolled back audit transaction")
            raise
        conn.commit()

    def close(self) -> None:
        """Close storage connection and release resources."""
        if self._connection is not None:
            try:
                self._connection.close()
                self._connection = None
                self._initialized = False
                logger.info("Closed DuckDB connection")
            except Exception as e:
                logger.warning(f"Error closing connection: {str(e)}")
