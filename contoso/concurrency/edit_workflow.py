import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from contoso.concurrency.conflict_resolver import (
    CONCURRENT_DELETE_ADVISORY,
    ConflictReport,
    ConflictResolver,
)
from contoso.entities import EntitySchema
from contoso.store.base.err_code import ErrCode
from contoso.store.base.errors import ValidationRejected
from contoso.store.base.record import EditIntent, Record
from contoso.store.versioned_store import VersionedRecordStore

logger = logging.getLogger(__name__)


class EditStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    NEEDS_MERGE = "NEEDS_MERGE"
    DELETED = "DELETED"


class DeleteStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    NEEDS_CONFIRMATION = "NEEDS_CONFIRMATION"
    ALREADY_GONE = "ALREADY_GONE"


@dataclass
class EditOutcome:
    """
    SUCCESS      record = stored state after the write
    NEEDS_MERGE  record = merged retry record, report = differences,
                 current = stored snapshot that won the race
    DELETED      record = empty placeholder, report = single advisory
    """
    status: EditStatus
    record: Record
    report: Optional[ConflictReport] = None
    current: Optional[Record] = None

    @property
    def new_token(self) -> Optional[bytes]:
        if self.status is EditStatus.SUCCESS:
            return self.record.version
        return None


@dataclass
class DeleteOutcome:
    status: DeleteStatus
    current: Optional[Record] = None
    message: Optional[str] = None


class EditWorkflow:
    """
    Request-facing edit/delete protocol for one entity.

    Besides reference lookups, one call performs at most one read and one
    conditional write. Storage failures (StorageUnavailable) are not caught here.
    """

    def __init__(
        self,
        *,
        schema: EntitySchema,
        store: VersionedRecordStore,
        resolver: ConflictResolver,
        reference_exists: Optional[Callable[[str, Any], bool]] = None,
    ):
        """
        reference_exists(table, id) tells whether a referenced row exists;
        without it reference fields are only type-checked.
        """
        self.schema = schema
        self.store = store
        self.resolver = resolver
        self.reference_exists = reference_exists

    def _validate(self, values: Mapping[str, Any], partial: bool) -> Dict[str, Any]:
        cleaned = self.schema.validate(values, partial=partial)
        if self.reference_exists is None:
            return cleaned

        errors: Dict[str, str] = {}
        for spec in self.schema.fields:
            value = cleaned.get(spec.name)
            if spec.references and value is not None and not self.reference_exists(spec.references, value):
                errors[spec.name] = f"{spec.label} {value} does not exist."
        if errors:
            raise ValidationRejected(errors)
        return cleaned

    def read(self, record_id: int) -> Optional[Record]:
        result = self.store.read(record_id)
        return result.value if result.ok else None

    def create(self, values: Mapping[str, Any]) -> Record:
        fields = self._validate(values, partial=False)
        return self.store.create(fields).value

    def attempt_edit(self, record_id: int, token: bytes, field_edits: Mapping[str, Any]) -> EditOutcome:
        edits: Dict[str, Any] = self._validate(field_edits, partial=True)
        intent = EditIntent(record_id=record_id, token=token, edits=edits)

        read = self.store.read(record_id)
        if not read.ok:
            return self._deleted(intent)

        client_values = read.value.with_fields(edits).with_version(token)
        result = self.store.conditional_update(record_id, intent)

        if result.ok:
            logger.info(
                "%s %s saved", self.schema.entity.capitalize(), record_id,
                extra={"record_id": record_id, "token": result.value.hex()},
            )
            return EditOutcome(EditStatus.SUCCESS, client_values.with_version(result.value))

        if result.err is ErrCode.VERSION_CONFLICT:
            resolution = self.resolver.resolve(intent, client_values, result.value)
            return EditOutcome(
                EditStatus.NEEDS_MERGE, resolution.merged, resolution.report, current=result.value
            )

        return self._deleted(intent)

    def _deleted(self, intent: EditIntent) -> EditOutcome:
        logger.warning(
            "%s %s was deleted by another user", self.schema.entity.capitalize(), intent.record_id,
            extra={"record_id": intent.record_id},
        )
        resolution = self.resolver.resolve(intent, Record(intent.record_id, intent.edits), None)
        return EditOutcome(EditStatus.DELETED, resolution.merged, resolution.report)

    def attempt_delete(self, record_id: int, token: bytes) -> DeleteOutcome:
        result = self.store.conditional_delete(record_id, token)

        if result.ok:
            return DeleteOutcome(DeleteStatus.SUCCESS)
        if result.err is ErrCode.VERSION_CONFLICT:
            return DeleteOutcome(
                DeleteStatus.NEEDS_CONFIRMATION,
                current=result.value,
                message=CONCURRENT_DELETE_ADVISORY,
            )
        return DeleteOutcome(DeleteStatus.ALREADY_GONE)
