from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from contoso.store.base.err_code import StoreResult
from contoso.store.base.query import ListQuery
from contoso.store.base.record import Record


class RecordIO(ABC):
    """
    RecordIO defines how records of one table are read from and
    conditionally written to an underlying storage engine.

    Conditional operations must evaluate "id matches AND version equals"
    atomically with the write. Transport or engine failures are raised
    as StorageUnavailable, never returned as a conflict.
    """

    table: str

    @abstractmethod
    def get(self, record_id: int) -> Optional[Record]:
        """
        Load a single record, or None if it does not exist.
        """
        pass

    @abstractmethod
    def insert(self, fields: Dict[str, Any]) -> Record:
        """
        Store a new record. The engine assigns the id and first version.
        """
        pass

    @abstractmethod
    def try_conditional_write(
        self, record_id: int, expected_version: bytes, new_fields: Dict[str, Any]
    ) -> StoreResult:
        """
        Apply new_fields only if the stored version equals expected_version.

        Returns:
            ok                      value = new version token
            VERSION_CONFLICT        value = current Record, nothing applied
            KEY_NOT_FOUND           record is gone
        """
        pass

    @abstractmethod
    def try_conditional_delete(self, record_id: int, expected_version: bytes) -> StoreResult:
        """
        Delete only if the stored version equals expected_version.
        Same result shape as try_conditional_write (ok value is None).
        """
        pass

    @abstractmethod
    def count(self, query: ListQuery) -> int:
        pass

    @abstractmethod
    def slice(self, query: ListQuery, offset: int, limit: int) -> List[Record]:
        """
        Return records matching query, ordered by query, in [offset, offset+limit).
        """
        pass
