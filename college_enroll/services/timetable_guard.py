import logging
from collections.abc import Collection, Sequence
from contextlib import contextmanager

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from college_enroll.core.errors import (
    DuplicateSlotError,
    InvalidTimeRangeError,
    NotFoundError,
    PersistenceError,
    SlotOverlapError,
    TimetableUpdateConflictError,
)
from college_enroll.core.locks import ScheduleLocks
from college_enroll.repositories.schedule import ScheduleRepository
from college_enroll.schemas.schedule import CourseSchedule
from college_enroll.schemas.timetable import SlotCreate, SlotUpdate
from college_enroll.services.conflicts import (
    detect_structural_conflicts,
    detect_student_impacts,
)

logger = logging.getLogger(__name__)


class TimetableMutationGuard:
    """
    Applies admin changes to a course timetable without breaking the schedule
    of any student enrolled in that course.

    Every mutation holds the course lock plus the locks of all enrolled
    students, validates, and only then writes, in a single transaction.
    """

    def __init__(self, repo: ScheduleRepository, locks: ScheduleLocks):
        self.repo = repo
        self.locks = locks

    @contextmanager
    def _locked_course(self, course_id: int):
        with self.locks.hold(courses=[course_id]):
            # enrolling in this course needs the course lock, so this set is stable
            student_ids = self.repo.find_enrolled_student_ids(course_id)
            with self.locks.hold(students=student_ids):
                course = self.repo.find_course(course_id, lock=True)
                if course is None:
                    self.repo.rollback()
                    raise NotFoundError("Course", course_id)
                try:
                    yield course
                    self.repo.commit()
                except SQLAlchemyError as exc:
                    self.repo.rollback()
                    logger.exception("Timetable write failed for course %s", course_id)
                    raise PersistenceError() from exc
                except Exception:
                    self.repo.rollback()
                    raise

    def _check(
        self,
        course: CourseSchedule,
        proposed: Sequence[SlotCreate],
        replaced_slot_ids: Collection[int] | None,
    ) -> None:
        if replaced_slot_ids is None:
            kept = []
        else:
            kept = [s for s in course.time_slots if s.id not in replaced_slot_ids]

        clashes = detect_structural_conflicts(proposed, kept)
        if clashes:
            if any(c.identical for c in clashes):
                raise DuplicateSlotError(course.id, clashes)
            raise SlotOverlapError(course.id, clashes)

        students = self.repo.find_enrolled_students_for_course(course.id, lock=True)
        impacts = detect_student_impacts(proposed, students)
        if impacts:
            logger.warning(
                "Timetable change for course %s rejected: %d clashes for %d students",
                course.id,
                len(impacts),
                len({i.student_id for i in impacts}),
            )
            raise TimetableUpdateConflictError(course.id, impacts)

    def validate_mutation(
        self,
        course_id: int,
        proposed_slots: Sequence[SlotCreate],
        replaced_slot_ids: Collection[int] | None = None,
    ) -> None:
        """
        Raise if writing `proposed_slots` to the course would clash.

        `replaced_slot_ids=None` means the proposal replaces the whole
        timetable; otherwise only the listed slots go away and the rest of the
        course's slots are kept and checked against the proposal.
        """
        with self._locked_course(course_id) as course:
            self._check(course, proposed_slots, replaced_slot_ids)

    def replace_timetable(self, course_id: int, slots: Sequence[SlotCreate]) -> None:
        with self._locked_course(course_id) as course:
            self._check(course, slots, None)
            self.repo.replace_course_timetable(course_id, slots)
        logger.info("Timetable replaced for course %s (%d slots)", course_id, len(slots))

    def add_slot(self, course_id: int, slot: SlotCreate) -> int:
        with self._locked_course(course_id) as course:
            self._check(course, [slot], ())
            slot_id = self.repo.add_slot(course_id, slot)
        logger.info("Slot %s added to course %s", slot_id, course_id)
        return slot_id

    def _owning_course(self, slot_id: int) -> int:
        found = self.repo.find_slot(slot_id)
        if found is None:
            raise NotFoundError("Timetable slot", slot_id)
        return found[0]

    def update_slot(self, slot_id: int, fields: SlotUpdate) -> int:
        course_id = self._owning_course(slot_id)
        with self._locked_course(course_id) as course:
            current = next((s for s in course.time_slots if s.id == slot_id), None)
            if current is None:
                raise NotFoundError("Timetable slot", slot_id)
            merged = {
                "day_of_week": current.day_of_week,
                "start_time": current.start_time,
                "end_time": current.end_time,
            }
            for name in fields.model_fields_set:
                if getattr(fields, name) is not None:
                    merged[name] = getattr(fields, name)
            try:
                slot = SlotCreate.model_validate(merged)
            except ValidationError as exc:
                raise InvalidTimeRangeError(slot_id) from exc

            self._check(course, [slot], {slot_id})
            self.repo.update_slot(slot_id, slot)
        logger.info("Slot %s of course %s updated", slot_id, course_id)
        return course_id

    def delete_slot(self, slot_id: int) -> int:
        # removing a meeting can never create a clash
        course_id = self._owning_course(slot_id)
        with self._locked_course(course_id) as course:
            if all(s.id != slot_id for s in course.time_slots):
                raise NotFoundError("Timetable slot", slot_id)
            self.repo.delete_slot(slot_id)
        logger.info("Slot %s of course %s deleted", slot_id, course_id)
        return course_id
