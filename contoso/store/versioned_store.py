import logging
from typing import Any, Dict, List

from contoso.store.base.err_code import ErrCode, StoreResult
from contoso.store.base.query import ListQuery
from contoso.store.base.record import EditIntent, Record
from contoso.store.base.record_io import RecordIO

logger = logging.getLogger("store")


class StoreSource:
    """
    Filtered, ordered view over a table, consumed by create_page().

    count() and slice() hit the backing store separately; they are not
    read from a common snapshot.
    """

    def __init__(self, record_io: RecordIO, query: ListQuery):
        self.record_io = record_io
        self.query = query

    def count(self) -> int:
        return self.record_io.count(self.query)

    def slice(self, offset: int, limit: int) -> List[Record]:
        return self.record_io.slice(self.query, offset, limit)


class VersionedRecordStore:
    """
    Conditional reads, writes and deletes over one table.

    Every mutation is a compare-and-swap on the record's version token,
    evaluated by the backing store. Nothing is cached between calls.
    """

    def __init__(self, *, record_io: RecordIO):
        self.record_io = record_io
        self.table = record_io.table

        logger.info(
            "VersionedRecordStore initialized: table=%s io=%s",
            self.table,
            type(record_io).__name__,
        )

    def read(self, record_id: int) -> StoreResult:
        record = self.record_io.get(record_id)
        if record is None:
            logger.debug("Store.read miss: table=%s id=%s", self.table, record_id)
            return StoreResult(ok=False, err=ErrCode.KEY_NOT_FOUND)
        return StoreResult(ok=True, value=record)

    def create(self, fields: Dict[str, Any]) -> StoreResult:
        record = self.record_io.insert(dict(fields))
        logger.info(
            "Store.create: table=%s id=%s version=%s",
            self.table, record.record_id, record.version.hex(),
        )
        return StoreResult(ok=True, value=record)

    def conditional_update(self, record_id: int, intent: EditIntent) -> StoreResult:
        logger.info(
            "Store.update: table=%s id=%s token=%s fields=%s",
            self.table, record_id, intent.token.hex(), list(intent.edited_fields),
        )
        result = self.record_io.try_conditional_write(record_id, intent.token, dict(intent.edits))

        if result.ok:
            logger.info(
                "Store.update success: table=%s id=%s new_token=%s",
                self.table, record_id, result.value.hex(),
            )
        elif result.err is ErrCode.VERSION_CONFLICT:
            logger.warning(
                "Store.update version conflict: table=%s id=%s expected=%s current=%s",
                self.table, record_id, intent.token.hex(), result.value.version.hex(),
            )
        elif result.err is ErrCode.KEY_NOT_FOUND:
            logger.warning("Store.update not found: table=%s id=%s", self.table, record_id)
        return result

    def conditional_delete(self, record_id: int, token: bytes) -> StoreResult:
        logger.info(
            "Store.delete: table=%s id=%s token=%s", self.table, record_id, token.hex()
        )
        result = self.record_io.try_conditional_delete(record_id, token)

        if result.err is ErrCode.VERSION_CONFLICT:
            logger.warning(
                "Store.delete version conflict: table=%s id=%s expected=%s current=%s",
                self.table, record_id, token.hex(), result.value.version.hex(),
            )
        elif result.err is ErrCode.KEY_NOT_FOUND:
            logger.warning("Store.delete not found: table=%s id=%s", self.table, record_id)
        return result

    def source(self, query: ListQuery) -> StoreSource:
        return StoreSource(self.record_io, query)
