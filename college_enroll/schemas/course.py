from datetime import datetime

from pydantic import BaseModel, Field

from college_enroll.core.config import (
    CODE_MAX_LENGTH,
    COURSE_CODE_PATTERN,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)
from college_enroll.schemas.timetable import SlotCreate, SlotRead


class CourseCreate(BaseModel):
    college_id: int = Field(ge=1)
    code: str = Field(max_length=CODE_MAX_LENGTH, pattern=COURSE_CODE_PATTERN)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    time_slots: list[SlotCreate] = []


class CourseUpdate(BaseModel):
    code: str | None = Field(default=None, max_length=CODE_MAX_LENGTH, pattern=COURSE_CODE_PATTERN)
    name: str | None = Field(default=None, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class CourseRead(BaseModel):
    id: int
    college_id: int
    code: str
    name: str
    description: str | None = None
    time_slots: list[SlotRead] = []

    class Config:
        from_attributes = True


class CourseStudentRow(BaseModel):
    student_id: int
    name: str
    student_number: str
    enrolled_at: datetime
