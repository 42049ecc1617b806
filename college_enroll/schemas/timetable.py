import re
from datetime import time
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    Field,
    PlainSerializer,
    model_validator,
)

# ISO weekday numbering, used end to end: 1 = Monday ... 7 = Sunday
DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


HHMM_PATTERN = re.compile(r"\d{2}:\d{2}")


def _hhmm_text(value: Any) -> Any:
    # time objects come from the database; anything from a client must be "HH:MM"
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not HHMM_PATTERN.fullmatch(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def _whole_minutes(value: time) -> time:
    if value.second or value.microsecond:
        raise ValueError("Time must be in HH:MM format")
    return value.replace(tzinfo=None)


# "HH:MM" on the wire, datetime.time everywhere else
ClockTime = Annotated[
    time,
    BeforeValidator(_hhmm_text),
    AfterValidator(_whole_minutes),
    PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json"),
]

DayOfWeek = Annotated[int, Field(ge=1, le=7, description="ISO weekday, 1 = Monday")]


class SlotCreate(BaseModel):
    day_of_week: DayOfWeek
    start_time: ClockTime
    end_time: ClockTime

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class SlotUpdate(BaseModel):
    day_of_week: DayOfWeek | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None


class SlotRead(BaseModel):
    id: int
    day_of_week: int
    start_time: ClockTime
    end_time: ClockTime

    class Config:
        from_attributes = True


class TimetableReplace(BaseModel):
    slots: list[SlotCreate] = Field(min_length=1)


class TimetableOut(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    slots: list[SlotRead]


class ScheduledSession(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    start_time: ClockTime
    end_time: ClockTime


class DaySchedule(BaseModel):
    day_of_week: int
    day: str
    sessions: list[ScheduledSession]


class StudentTimetable(BaseModel):
    student_id: int
    student_name: str
    days: list[DaySchedule]
