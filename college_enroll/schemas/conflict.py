from datetime import time
from enum import Enum

from pydantic import BaseModel

from college_enroll.schemas.timetable import ClockTime


class ConflictKind(str, Enum):
    INTERNAL = "INTERNAL"  # two requested courses clash
    EXTERNAL = "EXTERNAL"  # requested course clashes with an enrolled one


class ScheduledSlot(BaseModel):
    """A slot tagged with the course it belongs to."""

    model_config = {"frozen": True}

    course_id: int
    course_code: str
    day_of_week: int
    start_time: time
    end_time: time


class Conflict(BaseModel):
    kind: ConflictKind
    day_of_week: int
    course_id: int
    course_code: str
    start_time: ClockTime
    end_time: ClockTime
    other_course_id: int
    other_course_code: str
    other_start_time: ClockTime
    other_end_time: ClockTime
    message: str


class SlotClash(BaseModel):
    """A proposed slot colliding with another slot of the same course."""

    day_of_week: int
    start_time: ClockTime
    end_time: ClockTime
    other_start_time: ClockTime
    other_end_time: ClockTime
    identical: bool
    message: str


class StudentImpact(BaseModel):
    student_id: int
    student_name: str
    conflicting_course_id: int
    conflicting_course_code: str
    day_of_week: int
    start_time: ClockTime
    end_time: ClockTime
    conflicting_start_time: ClockTime
    conflicting_end_time: ClockTime
    message: str
