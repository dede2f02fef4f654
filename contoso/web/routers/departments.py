"""
Departments API Router

Handles CRUD operations for departments. Edits and deletes are
conditional on the version token the client last read.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from contoso.concurrency.edit_workflow import DeleteStatus, EditStatus, EditWorkflow
from contoso.paging.paginated import create_page
from contoso.store.base.query import ListQuery
from contoso.store.base.record import Record
from contoso.web.config import AppConfig
from contoso.web.dependencies import get_app_config, get_departments, get_registrar
from contoso.web.exceptions import (
    DeleteConflictError,
    EditConflictError,
    RecordGoneError,
    RecordNotFoundError,
)
from contoso.web.models import DepartmentCreate, DepartmentEdit, DepartmentPage, DepartmentResponse
from contoso.web.services.registrar import Registrar
from contoso.web.utils import decode_token, page_body, record_body

router = APIRouter()


def _department_body(record: Record, registrar: Registrar) -> dict:
    return record_body(record, administrator=registrar.instructor_name(record.get("instructor_id")))


@router.get("/departments", response_model=DepartmentPage)
def list_departments(
    page_number: Optional[int] = None,
    registrar: Registrar = Depends(get_registrar),
    config: AppConfig = Depends(get_app_config),
):
    """List departments ordered by name, one page at a time."""
    source = registrar.departments.store.source(ListQuery(order_by="name"))
    page = create_page(source, page_number, config.departments_page_size)
    return DepartmentPage(**page_body(page, lambda r: _department_body(r, registrar)))


@router.post("/departments", response_model=DepartmentResponse, status_code=201)
def create_department(
    department: DepartmentCreate,
    departments: EditWorkflow = Depends(get_departments),
    registrar: Registrar = Depends(get_registrar),
):
    """Create a new department."""
    record = departments.create(department.dict())
    return DepartmentResponse(**_department_body(record, registrar))


@router.get("/departments/{department_id}", response_model=DepartmentResponse)
def get_department(
    department_id: int,
    departments: EditWorkflow = Depends(get_departments),
    registrar: Registrar = Depends(get_registrar),
):
    """Query a department by id."""
    record = departments.read(department_id)
    if record is None:
        raise RecordNotFoundError("department", department_id)
    return DepartmentResponse(**_department_body(record, registrar))


@router.put("/departments/{department_id}", response_model=DepartmentResponse)
def edit_department(
    department_id: int,
    department: DepartmentEdit,
    departments: EditWorkflow = Depends(get_departments),
    registrar: Registrar = Depends(get_registrar),
):
    """
    Edit a department.

    - 200: saved, body carries the new row_version
    - 409: another user saved first; body lists the current values of the
      fields that differ and a `retry` record to resubmit
    - 410: another user deleted the department; go back to the list
    """
    token = decode_token(department.row_version)
    edits = department.dict(exclude_unset=True)
    edits.pop("row_version", None)

    outcome = departments.attempt_edit(department_id, token, edits)

    if outcome.status is EditStatus.SUCCESS:
        return DepartmentResponse(**_department_body(outcome.record, registrar))

    if outcome.status is EditStatus.NEEDS_MERGE:
        raise EditConflictError(
            entity="department",
            record_id=department_id,
            field_errors=outcome.report.field_errors,
            advisories=outcome.report.advisories,
            current=_department_body(outcome.current, registrar),
            retry=_department_body(outcome.record, registrar),
        )

    raise RecordGoneError("department", department_id, message=outcome.report.advisories[0])


@router.delete("/departments/{department_id}", status_code=204)
def delete_department(
    department_id: int,
    row_version: str,
    departments: EditWorkflow = Depends(get_departments),
    registrar: Registrar = Depends(get_registrar),
):
    """
    Delete a department.

    - 204: deleted
    - 409: the department changed since it was read; body shows the current
      values, delete again with the new row_version to confirm
    - 410: it was already deleted
    """
    token = decode_token(row_version)
    outcome = departments.attempt_delete(department_id, token)

    if outcome.status is DeleteStatus.NEEDS_CONFIRMATION:
        raise DeleteConflictError(
            entity="department",
            record_id=department_id,
            message=outcome.message,
            current=_department_body(outcome.current, registrar),
        )
    if outcome.status is DeleteStatus.ALREADY_GONE:
        raise RecordGoneError(
            "department", department_id,
            message="The department was already deleted by another user.",
        )
