from pydantic import BaseModel

from college_enroll.schemas.timetable import SlotRead


class CourseSchedule(BaseModel):
    id: int
    college_id: int
    code: str
    name: str
    time_slots: list[SlotRead] = []

    class Config:
        from_attributes = True


class StudentSchedule(BaseModel):
    id: int
    name: str
    college_id: int
    courses: list[CourseSchedule]


class EnrolledStudent(BaseModel):
    student_id: int
    name: str
    other_courses: list[CourseSchedule]
