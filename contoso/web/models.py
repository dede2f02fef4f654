"""
Registrar service data models

This module defines all Pydantic models for request/response validation.
Version tokens travel as URL-safe base64 strings in the `row_version` member.
"""

import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


# ========== Department Models ==========

class DepartmentCreate(BaseModel):
    """Request model for creating a department."""
    name: str = Field(..., description="Department name")
    budget: Decimal = Field(..., description="Budget")
    start_date: datetime.date = Field(..., description="Start date")
    instructor_id: Optional[int] = Field(None, description="Administrator (instructor id)")


class DepartmentEdit(BaseModel):
    """
    Request model for editing a department.

    Only the members present in the body are edited. row_version is the
    token the client last read.
    """
    row_version: str = Field(..., description="Version token (URL-safe base64)", min_length=1)
    name: Optional[str] = Field(None, description="Department name")
    budget: Optional[Decimal] = Field(None, description="Budget")
    start_date: Optional[datetime.date] = Field(None, description="Start date")
    instructor_id: Optional[int] = Field(None, description="Administrator (instructor id)")


class DepartmentResponse(BaseModel):
    """Response model for department data."""
    id: int
    name: Optional[str] = None
    budget: Optional[Decimal] = None
    start_date: Optional[datetime.date] = None
    instructor_id: Optional[int] = None
    administrator: Optional[str] = None
    row_version: str


class DepartmentPage(BaseModel):
    """One page of departments."""
    items: List[DepartmentResponse]
    page_index: int
    total_pages: int
    total_count: int
    has_previous: bool
    has_next: bool


# ========== Student Models ==========

class StudentCreate(BaseModel):
    """Request model for creating a student."""
    last_name: str = Field(..., description="Last name")
    first_mid_name: str = Field(..., description="First and middle name")
    enrollment_date: datetime.date = Field(..., description="Enrollment date")


class StudentEdit(BaseModel):
    """
    Request model for editing a student (partial update).

    row_version is optional; without it the token read at request time is used.
    """
    row_version: Optional[str] = Field(None, description="Version token (URL-safe base64)")
    last_name: Optional[str] = Field(None, description="Last name")
    first_mid_name: Optional[str] = Field(None, description="First and middle name")
    enrollment_date: Optional[datetime.date] = Field(None, description="Enrollment date")


class StudentResponse(BaseModel):
    """Response model for student data."""
    id: int
    last_name: str
    first_mid_name: str
    enrollment_date: datetime.date
    row_version: str


class StudentPage(BaseModel):
    """One page of students plus the listing state to echo back."""
    items: List[StudentResponse]
    page_index: int
    total_pages: int
    total_count: int
    has_previous: bool
    has_next: bool
    current_sort: Optional[str] = None
    current_filter: Optional[str] = None
    name_sort_parm: str
    date_sort_parm: str


# ========== Instructor Models ==========

class InstructorCreate(BaseModel):
    """Request model for creating an instructor."""
    last_name: str = Field(..., description="Last name")
    first_mid_name: str = Field(..., description="First and middle name")
    hire_date: datetime.date = Field(..., description="Hire date")


class InstructorResponse(BaseModel):
    """Response model for instructor data."""
    id: int
    last_name: str
    first_mid_name: str
    full_name: str
    hire_date: datetime.date
    row_version: str


class InstructorPage(BaseModel):
    """One page of instructors."""
    items: List[InstructorResponse]
    page_index: int
    total_pages: int
    total_count: int
    has_previous: bool
    has_next: bool
