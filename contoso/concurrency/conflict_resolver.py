"""
Conflict resolution for optimistic-concurrency edits.

When a conditional write is rejected, the resolver compares what the
caller submitted with what the store now holds and produces:

- a ConflictReport: one "Current value: ..." entry per edited field whose
  stored value differs, plus a field-less advisory message;
- a merged record the caller can resubmit: the stored identity and
  version token, with the caller's own values on the fields they edited.

Both inputs are plain Record snapshots; no tracking state is involved.
"""

import datetime
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from contoso.entities import EntitySchema, FieldKind, FieldSpec
from contoso.store.base.record import EditIntent, Record

logger = logging.getLogger(__name__)

CONCURRENT_EDIT_ADVISORY = (
    "The record you attempted to edit "
    "was modified by another user after you got the original value. The "
    "edit operation was canceled and the current values in the database "
    "have been displayed. If you still want to edit this record, click "
    "the Save button again. Otherwise click the Back to List hyperlink."
)

DELETED_ADVISORY = "Unable to save changes. The {entity} was deleted by another user."

CONCURRENT_DELETE_ADVISORY = (
    "The record you attempted to delete "
    "was modified by another user after you got the original values. "
    "The delete operation was canceled and the current values in the "
    "database have been displayed. If you still want to delete this "
    "record, click the Delete button again. Otherwise "
    "click the Back to List hyperlink."
)

_CENT = Decimal("0.01")

# field name -> callable mapping a reference id to its display name
ReferenceNames = Mapping[str, Callable[[Any], Optional[str]]]


@dataclass
class ConflictReport:
    field_errors: Dict[str, str] = field(default_factory=dict)
    advisories: List[str] = field(default_factory=list)
    deleted: bool = False

    def entries(self) -> List[Tuple[str, str]]:
        """Field entries in order, then advisories keyed by ""."""
        return list(self.field_errors.items()) + [("", msg) for msg in self.advisories]

    def __len__(self) -> int:
        return len(self.field_errors) + len(self.advisories)


@dataclass
class Resolution:
    report: ConflictReport
    merged: Record


# =========================================================
# Field-kind equality and display
# =========================================================

def _as_date(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def _as_cents(value: Any) -> Any:
    if value is None:
        return None
    try:
        return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return value


def values_equal(kind: FieldKind, left: Any, right: Any) -> bool:
    if kind is FieldKind.DATE:
        return _as_date(left) == _as_date(right)
    if kind is FieldKind.MONEY:
        return _as_cents(left) == _as_cents(right)
    return left == right


def format_money(value: Any, symbol: str = "$") -> str:
    amount = _as_cents(value)
    if not isinstance(amount, Decimal):
        return str(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_date(value: Any, date_format: str = "%Y-%m-%d") -> str:
    value = _as_date(value)
    if isinstance(value, datetime.date):
        return value.strftime(date_format)
    return str(value)


class ConflictResolver:
    def __init__(
        self,
        schema: EntitySchema,
        reference_names: Optional[ReferenceNames] = None,
        date_format: str = "%Y-%m-%d",
        currency_symbol: str = "$",
    ):
        self.schema = schema
        self.reference_names = dict(reference_names or {})
        self.date_format = date_format
        self.currency_symbol = currency_symbol

    def _spec(self, name: str) -> FieldSpec:
        try:
            return self.schema.spec(name)
        except KeyError:
            return FieldSpec(name, FieldKind.STRING, name)

    def _ordered(self, names) -> List[str]:
        declared = [n for n in self.schema.field_names if n in names]
        return declared + [n for n in names if n not in declared]

    def display(self, name: str, value: Any) -> str:
        spec = self._spec(name)
        if value is None:
            return ""
        if spec.kind is FieldKind.DATE:
            return format_date(value, self.date_format)
        if spec.kind is FieldKind.MONEY:
            return format_money(value, self.currency_symbol)
        if spec.kind is FieldKind.REFERENCE and name in self.reference_names:
            return self.reference_names[name](value) or ""
        return str(value)

    def resolve(
        self,
        intent: EditIntent,
        client_values: Record,
        current_values: Optional[Record],
    ) -> Resolution:
        """
        Args:
            intent: the rejected edit; its edit set decides which fields are compared
            client_values: what the caller submitted, as a full snapshot
            current_values: the store's snapshot, or None when the record is gone
        """
        if current_values is None:
            logger.info(
                "Conflict on deleted %s: id=%s", self.schema.entity, intent.record_id
            )
            report = ConflictReport(
                advisories=[DELETED_ADVISORY.format(entity=self.schema.entity)],
                deleted=True,
            )
            return Resolution(report=report, merged=Record.placeholder())

        report = ConflictReport()
        for name in self._ordered(intent.edited_fields):
            spec = self._spec(name)
            mine = client_values.get(name)
            theirs = current_values.get(name)
            if not values_equal(spec.kind, mine, theirs):
                report.field_errors[name] = f"Current value: {self.display(name, theirs)}"
        report.advisories.append(CONCURRENT_EDIT_ADVISORY)

        merged = current_values.with_fields(
            {name: client_values.get(name) for name in intent.edited_fields}
        )

        logger.info(
            "Conflict resolved: %s id=%s differing=%s retry_token=%s",
            self.schema.entity,
            intent.record_id,
            list(report.field_errors.keys()),
            merged.version.hex(),
        )
        return Resolution(report=report, merged=merged)
