from datetime import datetime

from pydantic import BaseModel, Field

from college_enroll.core.config import NAME_MAX_LENGTH, NAME_MIN_LENGTH


class StudentCreate(BaseModel):
    college_id: int = Field(ge=1)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    student_number: str = Field(min_length=1, max_length=50, pattern=r"^[A-Z0-9-]+$")


class StudentRead(BaseModel):
    id: int
    college_id: int
    name: str
    student_number: str

    class Config:
        from_attributes = True


class StudentProfile(StudentRead):
    total_enrollments: int
    joined_at: datetime
