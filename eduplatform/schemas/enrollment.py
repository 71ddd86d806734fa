# eduplatform/schemas/enrollment.py
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import EnrollmentStatus
from .common import UTCDateTime


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    enrollment_date: UTCDateTime
    status: EnrollmentStatus
    progress_percentage: float
    final_grade: Optional[float] = None


class ProgressUpdate(BaseModel):
    progress_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    final_grade: Optional[float] = Field(default=None, ge=0, le=100)
    status: Optional[EnrollmentStatus] = None
