"""
Students API Router

Handles the searchable, sortable student listing and student CRUD.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from contoso.concurrency.edit_workflow import DeleteStatus, EditStatus, EditWorkflow
from contoso.paging.paginated import create_page
from contoso.web.config import AppConfig
from contoso.web.dependencies import get_app_config, get_students
from contoso.web.exceptions import (
    DeleteConflictError,
    EditConflictError,
    RecordGoneError,
    RecordNotFoundError,
)
from contoso.web.models import StudentCreate, StudentEdit, StudentPage, StudentResponse
from contoso.web.services.listing import student_listing
from contoso.web.utils import decode_token, page_body, record_body

router = APIRouter()


@router.get("/students", response_model=StudentPage)
def list_students(
    sort_order: Optional[str] = None,
    current_filter: Optional[str] = None,
    search_string: Optional[str] = None,
    page_number: Optional[int] = None,
    students: EditWorkflow = Depends(get_students),
    config: AppConfig = Depends(get_app_config),
):
    """
    List students.

    sort_order: "" (last name), "name_desc", "Date", "date_desc"
    search_string: new search on last/first name, resets to page 1
    current_filter: search carried over from the previous page
    """
    listing = student_listing(sort_order, current_filter, search_string, page_number)
    page = create_page(
        students.store.source(listing.query), listing.page_number, config.students_page_size
    )
    return StudentPage(
        **page_body(page, record_body),
        current_sort=listing.current_sort,
        current_filter=listing.current_filter,
        name_sort_parm=listing.name_sort_parm,
        date_sort_parm=listing.date_sort_parm,
    )


@router.post("/students", response_model=StudentResponse, status_code=201)
def create_student(
    student: StudentCreate,
    students: EditWorkflow = Depends(get_students),
):
    """Create a new student. The id is assigned by the store."""
    record = students.create(student.dict())
    return StudentResponse(**record_body(record))


@router.get("/students/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: int,
    students: EditWorkflow = Depends(get_students),
):
    """Query a student by id."""
    record = students.read(student_id)
    if record is None:
        raise RecordNotFoundError("student", student_id)
    return StudentResponse(**record_body(record))


@router.put("/students/{student_id}", response_model=StudentResponse)
def edit_student(
    student_id: int,
    student: StudentEdit,
    students: EditWorkflow = Depends(get_students),
):
    """Edit a student (partial update)."""
    edits = student.dict(exclude_unset=True)
    row_version = edits.pop("row_version", None)

    if row_version is None:
        current = students.read(student_id)
        if current is None:
            raise RecordNotFoundError("student", student_id)
        token = current.version
    else:
        token = decode_token(row_version)

    outcome = students.attempt_edit(student_id, token, edits)

    if outcome.status is EditStatus.SUCCESS:
        return StudentResponse(**record_body(outcome.record))

    if outcome.status is EditStatus.NEEDS_MERGE:
        raise EditConflictError(
            entity="student",
            record_id=student_id,
            field_errors=outcome.report.field_errors,
            advisories=outcome.report.advisories,
            current=record_body(outcome.current),
            retry=record_body(outcome.record),
        )

    raise RecordGoneError("student", student_id, message=outcome.report.advisories[0])


@router.delete("/students/{student_id}", status_code=204)
def delete_student(
    student_id: int,
    row_version: Optional[str] = None,
    students: EditWorkflow = Depends(get_students),
):
    """Delete a student, optionally conditional on a row_version the client holds."""
    if row_version is None:
        current = students.read(student_id)
        if current is None:
            raise RecordNotFoundError("student", student_id)
        token = current.version
    else:
        token = decode_token(row_version)

    outcome = students.attempt_delete(student_id, token)

    if outcome.status is DeleteStatus.NEEDS_CONFIRMATION:
        raise DeleteConflictError(
            entity="student",
            record_id=student_id,
            message=outcome.message,
            current=record_body(outcome.current),
        )
    if outcome.status is DeleteStatus.ALREADY_GONE:
        raise RecordGoneError(
            "student", student_id,
            message="The student was already deleted by another user.",
        )
