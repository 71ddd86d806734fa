# eduplatform/schemas/session.py
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.enums import AttendanceStatus, SessionStatus
from .common import PartialUpdate, UTCDateTime


class SessionCreate(BaseModel):
    course_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_start: UTCDateTime
    scheduled_end: UTCDateTime
    meeting_id: Optional[str] = Field(default=None, max_length=100)
    meeting_url: Optional[str] = Field(default=None, max_length=500)
    meeting_password: Optional[str] = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.scheduled_start >= self.scheduled_end:
            raise ValueError("End time must be after start time")
        return self


class SessionUpdate(PartialUpdate):
    required_fields = ("title", "scheduled_start", "scheduled_end", "status")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_start: Optional[UTCDateTime] = None
    scheduled_end: Optional[UTCDateTime] = None
    meeting_id: Optional[str] = Field(default=None, max_length=100)
    meeting_url: Optional[str] = Field(default=None, max_length=500)
    meeting_password: Optional[str] = Field(default=None, max_length=100)
    status: Optional[SessionStatus] = None


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    description: Optional[str] = None
    scheduled_start: UTCDateTime
    scheduled_end: UTCDateTime
    meeting_id: Optional[str] = None
    meeting_url: Optional[str] = None
    status: SessionStatus
    created_at: datetime


class AttendanceMark(BaseModel):
    student_id: UUID
    status: AttendanceStatus
    join_time: Optional[UTCDateTime] = None
    leave_time: Optional[UTCDateTime] = None
    notes: Optional[str] = None


class BulkAttendanceRequest(BaseModel):
    attendance_records: List[AttendanceMark] = Field(..., min_length=1)


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    student_id: UUID
    status: AttendanceStatus
    join_time: Optional[UTCDateTime] = None
    leave_time: Optional[UTCDateTime] = None
    notes: Optional[str] = None
