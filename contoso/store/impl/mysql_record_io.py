import logging
import secrets
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pymysql

from contoso.store.base.err_code import ErrCode, StoreResult
from contoso.store.base.errors import StorageUnavailable
from contoso.store.base.query import ListQuery
from contoso.store.base.record import VERSION_TOKEN_SIZE, Record
from contoso.store.base.record_io import RecordIO

logger = logging.getLogger("store")

# Errors raised by pymysql when the server or the link misbehaves
_STORAGE_ERRORS = (
    pymysql.err.OperationalError,
    pymysql.err.InterfaceError,
    pymysql.err.InternalError,
)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MySQLRecordIO(RecordIO):
    def __init__(
        self,
        conn: pymysql.connections.Connection,
        table: str,
        columns: Sequence[str],
        key_column: str = "id",
        version_column: str = "row_version",
    ):
        """
        conn            : MySQL connection (autocommit, DictCursor)
        table           : table name (e.g. departments)
        columns         : data columns, excluding key and version
        key_column      : AUTO_INCREMENT primary key column
        version_column  : BINARY(8) column holding the version token
        """
        self.conn = conn
        self.table = table
        self.columns = list(columns)
        self.key_column = key_column
        self.version_column = version_column
        self._mutex = threading.Lock()

        logger.info(
            "RecordIO initialized: table=%s engine=mysql columns=%s",
            table,
            self.columns,
        )

    # =========================================================
    # Internal helpers
    # =========================================================

    @contextmanager
    def _cursor(self):
        with self._mutex:
            try:
                # reopen the link if the server dropped it (wait_timeout, restart)
                self.conn.ping(reconnect=True)
                with self.conn.cursor() as cursor:
                    yield cursor
            except _STORAGE_ERRORS as e:
                logger.error("RecordIO.mysql failure: table=%s err=%s", self.table, e)
                raise StorageUnavailable(cause=e) from e

    def _to_record(self, row: Dict[str, Any]) -> Record:
        row = dict(row)
        record_id = row.pop(self.key_column)
        version = bytes(row.pop(self.version_column) or b"")
        return Record(record_id, row, version)

    def _new_token(self, previous: bytes) -> bytes:
        token = secrets.token_bytes(VERSION_TOKEN_SIZE)
        while token == previous:
            token = secrets.token_bytes(VERSION_TOKEN_SIZE)
        return token

    def _select_columns(self) -> str:
        return ", ".join([self.key_column, self.version_column] + self.columns)

    def _check_columns(self, names) -> None:
        unknown = [n for n in names if n not in self.columns]
        if unknown:
            raise ValueError(f"unknown columns for {self.table}: {unknown}")

    def _where(self, query: ListQuery) -> Tuple[str, List[Any]]:
        if not query.has_filter:
            return "", []
        self._check_columns(query.search_fields)
        pattern = f"%{_escape_like(query.search.lower())}%"
        clause = " OR ".join(f"LOWER({col}) LIKE %s" for col in query.search_fields)
        return f"WHERE ({clause})", [pattern] * len(query.search_fields)

    def _order(self, query: ListQuery) -> str:
        direction = "DESC" if query.descending else "ASC"
        if query.order_by == "id":
            return f"ORDER BY {self.key_column} {direction}"
        self._check_columns([query.order_by])
        return f"ORDER BY {query.order_by} {direction}, {self.key_column} ASC"

    # =========================================================
    # Read / insert
    # =========================================================

    def get(self, record_id: int) -> Optional[Record]:
        sql = f"""
            SELECT {self._select_columns()}
            FROM {self.table}
            WHERE {self.key_column} = %s
        """
        with self._cursor() as cursor:
            cursor.execute(sql, (record_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return self._to_record(row)

    def insert(self, fields: Dict[str, Any]) -> Record:
        self._check_columns(fields.keys())
        columns = list(fields.keys()) + [self.version_column]
        token = self._new_token(b"")
        sql = f"""
            INSERT INTO {self.table} ({", ".join(columns)})
            VALUES ({", ".join(["%s"] * len(columns))})
        """
        with self._cursor() as cursor:
            cursor.execute(sql, tuple(fields.values()) + (token,))
            record_id = cursor.lastrowid
        logger.info("RecordIO.insert: table=%s id=%s", self.table, record_id)
        return Record(record_id, fields, token)

    # =========================================================
    # Conditional write / delete
    # =========================================================

    def _miss(self, record_id: int) -> StoreResult:
        # Zero rows touched: either the token moved on or the row is gone.
        current = self.get(record_id)
        if current is None:
            return StoreResult(ok=False, err=ErrCode.KEY_NOT_FOUND)
        return StoreResult(ok=False, value=current, err=ErrCode.VERSION_CONFLICT)

    def try_conditional_write(
        self, record_id: int, expected_version: bytes, new_fields: Dict[str, Any]
    ) -> StoreResult:
        self._check_columns(new_fields.keys())
        token = self._new_token(expected_version)
        assignments = [f"{col} = %s" for col in new_fields.keys()]
        assignments.append(f"{self.version_column} = %s")
        sql = f"""
            UPDATE {self.table}
            SET {", ".join(assignments)}
            WHERE {self.key_column} = %s AND {self.version_column} = %s
        """
        params = tuple(new_fields.values()) + (token, record_id, expected_version)
        logger.debug("Conditional update SQL: %s", sql)
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            touched = cursor.rowcount
        if touched == 0:
            return self._miss(record_id)
        logger.info("RecordIO.write: table=%s id=%s", self.table, record_id)
        return StoreResult(ok=True, value=token)

    def try_conditional_delete(self, record_id: int, expected_version: bytes) -> StoreResult:
        sql = f"""
            DELETE FROM {self.table}
            WHERE {self.key_column} = %s AND {self.version_column} = %s
        """
        with self._cursor() as cursor:
            cursor.execute(sql, (record_id, expected_version))
            touched = cursor.rowcount
        if touched == 0:
            return self._miss(record_id)
        logger.info("RecordIO.delete: table=%s id=%s", self.table, record_id)
        return StoreResult(ok=True)

    # =========================================================
    # Listing
    # =========================================================

    def count(self, query: ListQuery) -> int:
        where, params = self._where(query)
        sql = f"SELECT COUNT(*) AS n FROM {self.table} {where}"
        with self._cursor() as cursor:
            cursor.execute(sql, tuple(params))
            row = cursor.fetchone()
        return int(row["n"])

    def slice(self, query: ListQuery, offset: int, limit: int) -> List[Record]:
        where, params = self._where(query)
        sql = f"""
            SELECT {self._select_columns()}
            FROM {self.table}
            {where}
            {self._order(query)}
            LIMIT %s OFFSET %s
        """
        with self._cursor() as cursor:
            cursor.execute(sql, tuple(params) + (limit, offset))
            rows = cursor.fetchall()
        logger.debug(
            "RecordIO.slice: table=%s offset=%s limit=%s rows=%d",
            self.table, offset, limit, len(rows),
        )
        return [self._to_record(row) for row in rows]
