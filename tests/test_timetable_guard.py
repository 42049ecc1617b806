from datetime import time

import pytest

from college_enroll.core.errors import (
    DuplicateSlotError,
    InvalidTimeRangeError,
    NotFoundError,
    SlotOverlapError,
    TimetableUpdateConflictError,
)
from college_enroll.models.enrollment import Enrollment
from college_enroll.schemas.timetable import SlotCreate, SlotUpdate


def slot(day: int, start: str, end: str) -> SlotCreate:
    return SlotCreate(day_of_week=day, start_time=start, end_time=end)


def slots_of(repo, course_id: int) -> list[tuple[int, time, time]]:
    course = repo.find_course(course_id)
    return [(s.day_of_week, s.start_time, s.end_time) for s in course.time_slots]


@pytest.fixture()
def shared_student(db, seed):
    """Ravi takes CS103 (Mon 10-11) and CS104 (Tue 14:00-15:30)."""
    db.add_all(
        [
            Enrollment(student_id=seed.other, course_id=seed.cs103),
            Enrollment(student_id=seed.other, course_id=seed.cs104),
        ]
    )
    db.commit()
    return seed.other


def test_moving_slot_onto_enrolled_students_course(db, seed, repo, guard):
    # Asha takes CS101 (Mon 09-10) and CS103 (Mon 10-11)
    db.add(Enrollment(student_id=seed.student, course_id=seed.cs103))
    db.commit()
    slot_id = repo.find_course(seed.cs103).time_slots[0].id

    with pytest.raises(TimetableUpdateConflictError) as exc_info:
        guard.update_slot(slot_id, SlotUpdate(start_time="09:30", end_time="10:30"))

    err = exc_info.value
    assert err.detail()["student_ids"] == [seed.student]
    assert err.impacts[0].conflicting_course_id == seed.cs101
    assert slots_of(repo, seed.cs103) == [(1, time(10, 0), time(11, 0))]


def test_replace_timetable_rejected_for_enrolled_student(seed, repo, guard, shared_student):
    with pytest.raises(TimetableUpdateConflictError) as exc_info:
        guard.replace_timetable(seed.cs103, [slot(2, "15:00", "16:00")])

    assert {i.student_id for i in exc_info.value.impacts} == {shared_student}
    assert slots_of(repo, seed.cs103) == [(1, time(10, 0), time(11, 0))]


def test_replace_timetable(seed, repo, guard, shared_student):
    guard.replace_timetable(
        seed.cs103, [slot(3, "11:00", "12:00"), slot(1, "13:00", "14:00")]
    )

    assert slots_of(repo, seed.cs103) == [
        (1, time(13, 0), time(14, 0)),
        (3, time(11, 0), time(12, 0)),
    ]


def test_replacement_may_reuse_its_own_old_times(seed, repo, guard):
    guard.replace_timetable(seed.cs101, [slot(1, "09:00", "10:00"), slot(4, "09:00", "10:00")])
    assert len(slots_of(repo, seed.cs101)) == 2


def test_unenrolled_course_changes_freely(seed, repo, guard):
    # nobody takes CS102, so clashing with CS101 is irrelevant
    guard.replace_timetable(seed.cs102, [slot(1, "09:00", "10:00")])
    assert slots_of(repo, seed.cs102) == [(1, time(9, 0), time(10, 0))]


def test_add_duplicate_slot(seed, repo, guard):
    with pytest.raises(DuplicateSlotError):
        guard.add_slot(seed.cs101, slot(1, "09:00", "10:00"))
    assert len(slots_of(repo, seed.cs101)) == 1


def test_add_overlapping_slot(seed, guard):
    with pytest.raises(SlotOverlapError) as exc_info:
        guard.add_slot(seed.cs101, slot(1, "09:30", "11:00"))
    assert not exc_info.value.clashes[0].identical


def test_add_slot(seed, repo, guard):
    slot_id = guard.add_slot(seed.cs101, slot(1, "10:00", "11:00"))

    assert repo.find_slot(slot_id)[0] == seed.cs101
    assert len(slots_of(repo, seed.cs101)) == 2


def test_add_slot_that_clashes_for_a_student(seed, guard, shared_student):
    # CS103 gains Tuesday 15:00, Ravi's CS104 runs until 15:30
    with pytest.raises(TimetableUpdateConflictError):
        guard.add_slot(seed.cs103, slot(2, "15:00", "16:00"))


def test_update_slot_partial_fields(seed, repo, guard):
    slot_id = repo.find_course(seed.cs101).time_slots[0].id

    course_id = guard.update_slot(slot_id, SlotUpdate(day_of_week=5))

    assert course_id == seed.cs101
    assert slots_of(repo, seed.cs101) == [(5, time(9, 0), time(10, 0))]


def test_update_slot_with_inverted_range(seed, repo, guard):
    slot_id = repo.find_course(seed.cs101).time_slots[0].id

    with pytest.raises(InvalidTimeRangeError):
        guard.update_slot(slot_id, SlotUpdate(end_time="08:00"))


def test_update_unknown_slot(seed, guard):
    with pytest.raises(NotFoundError):
        guard.update_slot(9999, SlotUpdate(day_of_week=2))


def test_delete_slot(seed, repo, guard, shared_student):
    slot_id = repo.find_course(seed.cs103).time_slots[0].id

    assert guard.delete_slot(slot_id) == seed.cs103
    assert slots_of(repo, seed.cs103) == []
    assert repo.find_slot(slot_id) is None


def test_validate_mutation_checks_without_writing(seed, repo, guard, shared_student):
    guard.validate_mutation(seed.cs103, [slot(5, "09:00", "10:00")])
    with pytest.raises(TimetableUpdateConflictError):
        guard.validate_mutation(seed.cs103, [slot(2, "14:00", "15:00")])

    assert slots_of(repo, seed.cs103) == [(1, time(10, 0), time(11, 0))]


def test_unknown_course(guard):
    with pytest.raises(NotFoundError):
        guard.replace_timetable(9999, [slot(1, "09:00", "10:00")])
