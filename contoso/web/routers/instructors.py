"""
Instructors API Router

Instructors are listed for the department administrator picker and
referenced by departments.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from contoso.concurrency.edit_workflow import EditWorkflow
from contoso.paging.paginated import create_page
from contoso.store.base.query import ListQuery
from contoso.web.config import AppConfig
from contoso.web.dependencies import get_app_config, get_instructors
from contoso.web.exceptions import RecordNotFoundError
from contoso.web.models import InstructorCreate, InstructorPage, InstructorResponse
from contoso.web.utils import page_body, person_body

router = APIRouter()


@router.get("/instructors", response_model=InstructorPage)
def list_instructors(
    page_number: Optional[int] = None,
    instructors: EditWorkflow = Depends(get_instructors),
    config: AppConfig = Depends(get_app_config),
):
    """List instructors ordered by last name."""
    source = instructors.store.source(ListQuery(order_by="last_name"))
    page = create_page(source, page_number, config.instructors_page_size)
    return InstructorPage(**page_body(page, person_body))


@router.post("/instructors", response_model=InstructorResponse, status_code=201)
def create_instructor(
    instructor: InstructorCreate,
    instructors: EditWorkflow = Depends(get_instructors),
):
    """Create a new instructor."""
    record = instructors.create(instructor.dict())
    return InstructorResponse(**person_body(record))


@router.get("/instructors/{instructor_id}", response_model=InstructorResponse)
def get_instructor(
    instructor_id: int,
    instructors: EditWorkflow = Depends(get_instructors),
):
    """Query an instructor by id."""
    record = instructors.read(instructor_id)
    if record is None:
        raise RecordNotFoundError("instructor", instructor_id)
    return InstructorResponse(**person_body(record))
