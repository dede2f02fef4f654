"""
Entity schemas for the registrar tables.

A schema lists the editable fields of a table in declaration order,
together with the kind of each field. The kind decides how submitted
values are validated, compared during conflict resolution, and
formatted for display.
"""

import datetime
import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from contoso.store.base.errors import ValidationRejected


class FieldKind(str, enum.Enum):
    STRING = "string"
    DATE = "date"
    MONEY = "money"
    REFERENCE = "reference"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    label: str
    required: bool = False
    max_length: Optional[int] = None
    minimum: Optional[Decimal] = None
    references: Optional[str] = None


@dataclass(frozen=True)
class EntitySchema:
    entity: str
    table: str
    fields: Tuple[FieldSpec, ...]

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def spec(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def validate(self, values: Mapping[str, Any], partial: bool = True) -> Dict[str, Any]:
        """
        Check submitted values and return them normalized.

        With partial=False every required field must be present.
        Raises ValidationRejected listing every offending field.
        """
        errors: Dict[str, str] = {}
        cleaned: Dict[str, Any] = {}

        for name in values:
            if name not in self.field_names:
                errors[name] = "Unknown field"

        for spec in self.fields:
            if spec.name not in values:
                if spec.required and not partial:
                    errors[spec.name] = f"The {spec.label} field is required."
                continue
            try:
                cleaned[spec.name] = _clean(spec, values[spec.name])
            except ValueError as e:
                errors[spec.name] = str(e)

        if errors:
            raise ValidationRejected(errors)
        return cleaned


def _clean(spec: FieldSpec, value: Any) -> Any:
    if value is None:
        if spec.required:
            raise ValueError(f"The {spec.label} field is required.")
        return None

    if spec.kind is FieldKind.STRING:
        if not isinstance(value, str):
            raise ValueError(f"{spec.label} must be text.")
        if spec.required and not value.strip():
            raise ValueError(f"The {spec.label} field is required.")
        if spec.max_length is not None and len(value) > spec.max_length:
            raise ValueError(
                f"{spec.label} cannot be longer than {spec.max_length} characters."
            )
        return value

    if spec.kind is FieldKind.DATE:
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        if isinstance(value, str):
            try:
                return datetime.date.fromisoformat(value)
            except ValueError:
                raise ValueError(f"{spec.label} must be a date (YYYY-MM-DD).")
        raise ValueError(f"{spec.label} must be a date (YYYY-MM-DD).")

    if spec.kind is FieldKind.MONEY:
        if isinstance(value, bool):
            raise ValueError(f"{spec.label} must be an amount.")
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{spec.label} must be an amount.")
        if not amount.is_finite():
            raise ValueError(f"{spec.label} must be an amount.")
        if spec.minimum is not None and amount < spec.minimum:
            raise ValueError(f"{spec.label} cannot be less than {spec.minimum}.")
        return amount

    if spec.kind is FieldKind.REFERENCE:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{spec.label} must be an id.")
        return value

    raise ValueError(f"unsupported field kind {spec.kind}")


DEPARTMENT = EntitySchema(
    entity="department",
    table="departments",
    fields=(
        FieldSpec("name", FieldKind.STRING, "Name", required=True, max_length=50),
        FieldSpec("budget", FieldKind.MONEY, "Budget", required=True, minimum=Decimal("0")),
        FieldSpec("start_date", FieldKind.DATE, "Start Date", required=True),
        FieldSpec("instructor_id", FieldKind.REFERENCE, "Administrator", references="instructors"),
    ),
)

STUDENT = EntitySchema(
    entity="student",
    table="students",
    fields=(
        FieldSpec("last_name", FieldKind.STRING, "Last Name", required=True, max_length=50),
        FieldSpec("first_mid_name", FieldKind.STRING, "First Name", required=True, max_length=50),
        FieldSpec("enrollment_date", FieldKind.DATE, "Enrollment Date", required=True),
    ),
)

INSTRUCTOR = EntitySchema(
    entity="instructor",
    table="instructors",
    fields=(
        FieldSpec("last_name", FieldKind.STRING, "Last Name", required=True, max_length=50),
        FieldSpec("first_mid_name", FieldKind.STRING, "First Name", required=True, max_length=50),
        FieldSpec("hire_date", FieldKind.DATE, "Hire Date", required=True),
    ),
)

SCHEMAS = {s.table: s for s in (DEPARTMENT, STUDENT, INSTRUCTOR)}


def full_name(person: Mapping[str, Any]) -> str:
    """Display name of a student or instructor: "Last, First"."""
    return f"{person.get('last_name')}, {person.get('first_mid_name')}"
