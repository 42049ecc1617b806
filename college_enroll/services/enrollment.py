import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from college_enroll.core.errors import (
    CollegeMismatchError,
    NotFoundError,
    PersistenceError,
    TimetableClashError,
)
from college_enroll.core.locks import ScheduleLocks
from college_enroll.repositories.schedule import ScheduleRepository
from college_enroll.schemas.conflict import Conflict
from college_enroll.schemas.enrollment import EnrolledCourse, EnrollmentResult
from college_enroll.schemas.schedule import CourseSchedule, StudentSchedule
from college_enroll.services.conflicts import detect_enrollment_conflicts

logger = logging.getLogger(__name__)

ALREADY_ENROLLED_MESSAGE = "All requested courses are already enrolled."


class EnrollmentCoordinator:
    """
    Enrolls a student in a batch of courses as one all-or-nothing operation.

    Phases:
    - VALIDATE: student and courses exist, every course is in the student's college
    - CHECK: no requested course clashes with another requested course or
      with the student's current schedule
    - COMMIT: insert every new enrollment row in one transaction

    Nothing is written before CHECK passes, so a rejected request never needs
    to be undone.
    """

    def __init__(self, repo: ScheduleRepository, locks: ScheduleLocks):
        self.repo = repo
        self.locks = locks

    def _validate(
        self, student_id: int, course_ids: Sequence[int]
    ) -> tuple[StudentSchedule, list[CourseSchedule]]:
        student = self.repo.find_student_with_enrollments(student_id, lock=True)
        if student is None:
            raise NotFoundError("Student", student_id)

        requested = self.repo.find_courses_by_ids(course_ids, lock=True)
        if len(requested) != len(course_ids):
            found = {c.id for c in requested}
            raise NotFoundError("Course", [i for i in course_ids if i not in found])

        mismatched = [c.id for c in requested if c.college_id != student.college_id]
        if mismatched:
            logger.warning(
                "Student %s requested courses from another college: %s",
                student_id,
                mismatched,
            )
            raise CollegeMismatchError(student_id, mismatched)

        enrolled_ids = {c.id for c in student.courses}
        return student, [c for c in requested if c.id not in enrolled_ids]

    def check_conflicts(self, student_id: int, course_ids: Sequence[int]) -> list[Conflict]:
        """Dry run: the conflicts `enroll` would report, without writing."""
        course_ids = list(dict.fromkeys(course_ids))
        with self.locks.hold(courses=course_ids, students=[student_id]):
            try:
                student, new_courses = self._validate(student_id, course_ids)
                return detect_enrollment_conflicts(new_courses, student.courses)
            finally:
                # release any row locks taken while reading
                self.repo.rollback()

    def enroll(self, student_id: int, course_ids: Sequence[int]) -> EnrollmentResult:
        # duplicates in the request collapse, first occurrence wins
        course_ids = list(dict.fromkeys(course_ids))

        with self.locks.hold(courses=course_ids, students=[student_id]):
            try:
                student, new_courses = self._validate(student_id, course_ids)

                if not new_courses:
                    self.repo.rollback()
                    logger.info(
                        "Student %s re-requested enrolled courses; nothing to do", student_id
                    )
                    return EnrollmentResult(enrolled=[], message=ALREADY_ENROLLED_MESSAGE)

                conflicts = detect_enrollment_conflicts(new_courses, student.courses)
                if conflicts:
                    logger.warning(
                        "Timetable clash for student %s (%d conflicts); enrollment aborted",
                        student_id,
                        len(conflicts),
                    )
                    raise TimetableClashError(conflicts)

                self.repo.create_enrollments(student_id, [c.id for c in new_courses])
                self.repo.commit()
            except SQLAlchemyError as exc:
                self.repo.rollback()
                logger.exception("Enrollment commit failed for student %s", student_id)
                raise PersistenceError() from exc
            except Exception:
                self.repo.rollback()
                raise

        logger.info("Student %s enrolled in %d new courses", student_id, len(new_courses))
        return EnrollmentResult(
            enrolled=[
                EnrolledCourse(course_id=c.id, course_code=c.code, course_name=c.name)
                for c in new_courses
            ]
        )

    def drop(self, student_id: int, enrollment_id: int) -> None:
        """Remove one of the student's own enrollments."""
        with self.locks.hold(students=[student_id]):
            enrollment = self.repo.find_enrollment(enrollment_id)
            if enrollment is None or enrollment.student_id != student_id:
                raise NotFoundError("Enrollment", enrollment_id)
            try:
                self.repo.delete_enrollment(enrollment)
                self.repo.commit()
            except SQLAlchemyError as exc:
                self.repo.rollback()
                logger.exception("Failed to drop enrollment %s", enrollment_id)
                raise PersistenceError() from exc
        logger.info("Student %s dropped enrollment %s", student_id, enrollment_id)
