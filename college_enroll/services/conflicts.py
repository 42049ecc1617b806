"""
Timetable conflict detection.

Everything here is pure: inputs are in-memory slots, outputs are lists of
conflict records in a deterministic order (outer input first, then inner).
Slots are anything exposing `day_of_week`, `start_time` and `end_time`.
"""
from collections.abc import Iterable, Sequence
from datetime import time
from typing import Protocol, TypeVar

from college_enroll.schemas.conflict import (
    Conflict,
    ConflictKind,
    ScheduledSlot,
    SlotClash,
    StudentImpact,
)
from college_enroll.schemas.schedule import CourseSchedule, EnrolledStudent
from college_enroll.schemas.timetable import DAY_NAMES


class SlotLike(Protocol):
    day_of_week: int
    start_time: time
    end_time: time


S = TypeVar("S", bound=SlotLike)
T = TypeVar("T", bound=SlotLike)


def overlaps(a: SlotLike, b: SlotLike) -> bool:
    """Half-open [start, end) intervals on the same weekday.

    Touching endpoints (a.end == b.start) do not overlap.
    """
    return (
        a.day_of_week == b.day_of_week
        and a.start_time < b.end_time
        and b.start_time < a.end_time
    )


def is_identical(a: SlotLike, b: SlotLike) -> bool:
    return (
        a.day_of_week == b.day_of_week
        and a.start_time == b.start_time
        and a.end_time == b.end_time
    )


def find_overlaps(
    slots: Sequence[S], others: Sequence[T] | None = None
) -> list[tuple[S, S | T]]:
    """
    Self mode (others is None): every overlapping pair (slots[i], slots[j]) with
    i < j, so each pair is reported once.

    Cross mode: every overlapping pair from slots x others.
    """
    pairs = []
    if others is None:
        for i, a in enumerate(slots):
            for b in slots[i + 1 :]:
                if overlaps(a, b):
                    pairs.append((a, b))
        return pairs

    for a in slots:
        for b in others:
            if overlaps(a, b):
                pairs.append((a, b))
    return pairs


def format_slot(slot: SlotLike) -> str:
    day = DAY_NAMES.get(slot.day_of_week, f"day {slot.day_of_week}")
    return f"{day} {slot.start_time:%H:%M}-{slot.end_time:%H:%M}"


def schedule_slots(courses: Iterable[CourseSchedule]) -> list[ScheduledSlot]:
    """Flatten courses into course-tagged slots, keeping course then slot order."""
    return [
        ScheduledSlot(
            course_id=course.id,
            course_code=course.code,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        for course in courses
        for slot in course.time_slots
    ]


def _conflict(kind: ConflictKind, a: ScheduledSlot, b: ScheduledSlot) -> Conflict:
    if kind is ConflictKind.INTERNAL:
        message = (
            f"Requested course {a.course_code} ({format_slot(a)}) clashes with "
            f"requested course {b.course_code} ({format_slot(b)})."
        )
    else:
        message = (
            f"Requested course {a.course_code} ({format_slot(a)}) clashes with "
            f"already enrolled course {b.course_code} ({format_slot(b)})."
        )
    return Conflict(
        kind=kind,
        day_of_week=a.day_of_week,
        course_id=a.course_id,
        course_code=a.course_code,
        start_time=a.start_time,
        end_time=a.end_time,
        other_course_id=b.course_id,
        other_course_code=b.course_code,
        other_start_time=b.start_time,
        other_end_time=b.end_time,
        message=message,
    )


def detect_enrollment_conflicts(
    requested: Sequence[CourseSchedule], existing: Sequence[CourseSchedule]
) -> list[Conflict]:
    """INTERNAL conflicts among the requested courses, then EXTERNAL ones
    between requested courses and the existing schedule."""
    new_slots = schedule_slots(requested)
    current_slots = schedule_slots(existing)

    conflicts = [
        _conflict(ConflictKind.INTERNAL, a, b) for a, b in find_overlaps(new_slots)
    ]
    conflicts.extend(
        _conflict(ConflictKind.EXTERNAL, a, b)
        for a, b in find_overlaps(new_slots, current_slots)
    )
    return conflicts


def _slot_clash(a: SlotLike, b: SlotLike) -> SlotClash:
    identical = is_identical(a, b)
    if identical:
        message = f"Slot {format_slot(a)} is already in this course's timetable."
    else:
        message = f"Slot {format_slot(a)} overlaps {format_slot(b)} in this course's timetable."
    return SlotClash(
        day_of_week=a.day_of_week,
        start_time=a.start_time,
        end_time=a.end_time,
        other_start_time=b.start_time,
        other_end_time=b.end_time,
        identical=identical,
        message=message,
    )


def detect_structural_conflicts(
    proposed: Sequence[SlotLike], existing: Sequence[SlotLike]
) -> list[SlotClash]:
    """Clashes inside one course's own timetable: proposed slots against each
    other, then against the course's slots that are being kept."""
    clashes = [_slot_clash(a, b) for a, b in find_overlaps(proposed)]
    clashes.extend(_slot_clash(a, b) for a, b in find_overlaps(proposed, existing))
    return clashes


def detect_student_impacts(
    proposed: Sequence[SlotLike], students: Iterable[EnrolledStudent]
) -> list[StudentImpact]:
    """One entry per (student, proposed slot, clashing slot of another course)."""
    impacts = []
    for student in students:
        others = schedule_slots(student.other_courses)
        for new, old in find_overlaps(proposed, others):
            impacts.append(
                StudentImpact(
                    student_id=student.student_id,
                    student_name=student.name,
                    conflicting_course_id=old.course_id,
                    conflicting_course_code=old.course_code,
                    day_of_week=new.day_of_week,
                    start_time=new.start_time,
                    end_time=new.end_time,
                    conflicting_start_time=old.start_time,
                    conflicting_end_time=old.end_time,
                    message=(
                        f"{student.name} is enrolled in {old.course_code} "
                        f"({format_slot(old)}), which overlaps {format_slot(new)}."
                    ),
                )
            )
    return impacts
