import itertools
import logging
import struct
import threading
from typing import Any, Dict, List, Optional

from contoso.store.base.err_code import ErrCode, StoreResult
from contoso.store.base.query import ListQuery
from contoso.store.base.record import Record
from contoso.store.base.record_io import RecordIO

logger = logging.getLogger("store")


class VersionClock:
    """
    Monotonic rowversion source. One clock may be shared by several
    tables so that tokens never repeat inside a database.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._mutex = threading.Lock()

    def next_token(self) -> bytes:
        with self._mutex:
            return struct.pack(">Q", next(self._counter))


class InMemoryRecordIO(RecordIO):
    """
    Process-local table.

    Structure:
        record_id -> (fields, version)
    Every compare-and-swap runs under a single mutex.
    """

    def __init__(self, table: str, clock: Optional[VersionClock] = None):
        self.table = table
        self.clock = clock or VersionClock()
        self._rows: Dict[int, Record] = {}
        self._ids = itertools.count(1)
        self._mutex = threading.Lock()

        logger.info("RecordIO initialized: table=%s engine=memory", table)

    def get(self, record_id: int) -> Optional[Record]:
        with self._mutex:
            return self._rows.get(record_id)

    def insert(self, fields: Dict[str, Any]) -> Record:
        with self._mutex:
            record_id = next(self._ids)
            record = Record(record_id, fields, self.clock.next_token())
            self._rows[record_id] = record
        logger.info("RecordIO.insert: table=%s id=%s", self.table, record_id)
        return record

    def try_conditional_write(
        self, record_id: int, expected_version: bytes, new_fields: Dict[str, Any]
    ) -> StoreResult:
        with self._mutex:
            current = self._rows.get(record_id)
            if current is None:
                return StoreResult(ok=False, err=ErrCode.KEY_NOT_FOUND)
            if current.version != expected_version:
                return StoreResult(ok=False, value=current, err=ErrCode.VERSION_CONFLICT)
            token = self.clock.next_token()
            self._rows[record_id] = Record(record_id, current.with_fields(new_fields).fields, token)
        logger.debug(
            "RecordIO.write: table=%s id=%s version=%s", self.table, record_id, token.hex()
        )
        return StoreResult(ok=True, value=token)

    def try_conditional_delete(self, record_id: int, expected_version: bytes) -> StoreResult:
        with self._mutex:
            current = self._rows.get(record_id)
            if current is None:
                return StoreResult(ok=False, err=ErrCode.KEY_NOT_FOUND)
            if current.version != expected_version:
                return StoreResult(ok=False, value=current, err=ErrCode.VERSION_CONFLICT)
            del self._rows[record_id]
        logger.debug("RecordIO.delete: table=%s id=%s", self.table, record_id)
        return StoreResult(ok=True)

    # =========================================================
    # Listing
    # =========================================================

    def _matching(self, query: ListQuery) -> List[Record]:
        with self._mutex:
            rows = list(self._rows.values())
        if not query.has_filter:
            return rows
        needle = query.search.casefold()
        return [
            r for r in rows
            if any(
                r.get(f) is not None and needle in str(r.get(f)).casefold()
                for f in query.search_fields
            )
        ]

    def count(self, query: ListQuery) -> int:
        return len(self._matching(query))

    def slice(self, query: ListQuery, offset: int, limit: int) -> List[Record]:
        rows = sorted(self._matching(query), key=lambda r: r.record_id)
        if query.order_by != "id":
            # stable: ties keep ascending id
            rows.sort(
                key=lambda r: (r.get(query.order_by) is not None, r.get(query.order_by)),
                reverse=query.descending,
            )
        elif query.descending:
            rows.reverse()
        return rows[offset:offset + limit]
