# eduplatform/schemas/assignment.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .common import PartialUpdate, UTCDateTime


class AssignmentCreate(BaseModel):
    course_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    due_date: Optional[UTCDateTime] = None
    max_points: float = Field(default=100, gt=0, le=999)
    assignment_type: str = Field(default="homework", min_length=1, max_length=50)


class AssignmentUpdate(PartialUpdate):
    required_fields = ("title", "description", "max_points", "assignment_type", "is_active")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[UTCDateTime] = None
    max_points: Optional[float] = Field(default=None, gt=0, le=999)
    assignment_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    is_active: Optional[bool] = None


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    created_by_id: UUID
    title: str
    description: str
    due_date: Optional[UTCDateTime] = None
    max_points: float
    assignment_type: str
    is_active: bool
    created_at: datetime


class SubmissionCreate(BaseModel):
    submission_text: Optional[str] = None
    file_url: Optional[str] = Field(default=None, max_length=500)


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    assignment_id: UUID
    student_id: UUID
    submission_text: Optional[str] = None
    file_url: Optional[str] = None
    submitted_at: UTCDateTime
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[UTCDateTime] = None
    graded_by_id: Optional[UUID] = None


class GradeRequest(BaseModel):
    grade: float = Field(..., ge=0)
    feedback: Optional[str] = None
