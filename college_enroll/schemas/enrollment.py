from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

from college_enroll.schemas.conflict import Conflict

CourseId = Annotated[int, Field(ge=1)]


class EnrollmentCreate(BaseModel):
    student_id: int = Field(ge=1)
    course_ids: list[CourseId] = Field(min_length=1)


class EnrolledCourse(BaseModel):
    course_id: int
    course_code: str
    course_name: str


class EnrollmentResult(BaseModel):
    enrolled: list[EnrolledCourse]
    message: str | None = None


class ConflictCheckResult(BaseModel):
    has_conflicts: bool
    conflicts: list[Conflict]


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    course_id: int
    course_code: str
    course_name: str
    enrolled_at: datetime
