from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from college_enroll.models.course import Course
from college_enroll.models.enrollment import Enrollment
from college_enroll.models.student import Student
from college_enroll.models.time_slot import TimeSlot
from college_enroll.schemas.schedule import CourseSchedule, EnrolledStudent, StudentSchedule
from college_enroll.schemas.timetable import SlotCreate, SlotRead


class ScheduleRepository(Protocol):
    """What the enrollment and timetable services need from storage.

    Implementations never commit on their own; callers own the transaction.
    """

    def find_student_with_enrollments(
        self, student_id: int, *, lock: bool = False
    ) -> StudentSchedule | None: ...

    def find_courses_by_ids(
        self, course_ids: Sequence[int], *, lock: bool = False
    ) -> list[CourseSchedule]: ...

    def find_course(self, course_id: int, *, lock: bool = False) -> CourseSchedule | None: ...

    def find_slot(self, slot_id: int) -> tuple[int, SlotRead] | None: ...

    def find_enrolled_student_ids(self, course_id: int) -> list[int]: ...

    def find_enrolled_students_for_course(
        self, course_id: int, *, lock: bool = False
    ) -> list[EnrolledStudent]: ...

    def find_enrollment(self, enrollment_id: int) -> Enrollment | None: ...

    def create_enrollments(self, student_id: int, course_ids: Sequence[int]) -> None: ...

    def delete_enrollment(self, enrollment: Enrollment) -> None: ...

    def replace_course_timetable(self, course_id: int, slots: Sequence[SlotCreate]) -> None: ...

    def add_slot(self, course_id: int, slot: SlotCreate) -> int: ...

    def update_slot(self, slot_id: int, slot: SlotCreate) -> None: ...

    def delete_slot(self, slot_id: int) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class SqlAlchemyScheduleRepository:
    def __init__(self, db: Session):
        self.db = db

    def _course_query(self):
        return select(Course).options(selectinload(Course.time_slots))

    def find_student_with_enrollments(
        self, student_id: int, *, lock: bool = False
    ) -> StudentSchedule | None:
        stmt = select(Student).where(Student.id == student_id)
        if lock:
            stmt = stmt.with_for_update()
        student = self.db.execute(stmt).scalar_one_or_none()
        if student is None:
            return None

        courses = (
            self.db.execute(
                self._course_query()
                .join(Enrollment, Enrollment.course_id == Course.id)
                .where(Enrollment.student_id == student_id)
                .order_by(Enrollment.id.asc())
            )
            .scalars()
            .all()
        )
        return StudentSchedule(
            id=student.id,
            name=student.name,
            college_id=student.college_id,
            courses=[CourseSchedule.model_validate(c) for c in courses],
        )

    def courses_by_ids_stmt(self, course_ids: Sequence[int], *, lock: bool = False):
        stmt = self._course_query().where(Course.id.in_(course_ids))
        if lock:
            # shared row lock: enrollments may read together, a timetable edit waits
            stmt = stmt.with_for_update(read=True)
        return stmt

    def find_courses_by_ids(
        self, course_ids: Sequence[int], *, lock: bool = False
    ) -> list[CourseSchedule]:
        if not course_ids:
            return []
        courses = (
            self.db.execute(self.courses_by_ids_stmt(course_ids, lock=lock))
            .scalars()
            .all()
        )
        by_id = {c.id: CourseSchedule.model_validate(c) for c in courses}
        # keep the caller's order
        return [by_id[i] for i in course_ids if i in by_id]

    def find_course(self, course_id: int, *, lock: bool = False) -> CourseSchedule | None:
        stmt = self._course_query().where(Course.id == course_id)
        if lock:
            stmt = stmt.with_for_update()
        course = self.db.execute(stmt).scalar_one_or_none()
        return CourseSchedule.model_validate(course) if course else None

    def find_slot(self, slot_id: int) -> tuple[int, SlotRead] | None:
        slot = self.db.get(TimeSlot, slot_id)
        if slot is None:
            return None
        return slot.course_id, SlotRead.model_validate(slot)

    def find_enrolled_student_ids(self, course_id: int) -> list[int]:
        return list(
            self.db.execute(
                select(Enrollment.student_id)
                .where(Enrollment.course_id == course_id)
                .order_by(Enrollment.student_id.asc())
            )
            .scalars()
            .all()
        )

    def find_enrolled_students_for_course(
        self, course_id: int, *, lock: bool = False
    ) -> list[EnrolledStudent]:
        stmt = (
            select(Student)
            .join(Enrollment, Enrollment.student_id == Student.id)
            .where(Enrollment.course_id == course_id)
            .order_by(Student.id.asc())
        )
        if lock:
            stmt = stmt.with_for_update()
        students = self.db.execute(stmt).scalars().all()
        if not students:
            return []

        rows = self.db.execute(
            select(Enrollment.student_id, Enrollment.course_id)
            .where(
                Enrollment.student_id.in_([s.id for s in students]),
                Enrollment.course_id != course_id,
            )
            .order_by(Enrollment.id.asc())
        ).all()

        courses = {
            c.id: c for c in self.find_courses_by_ids(sorted({r.course_id for r in rows}))
        }
        other_courses: dict[int, list[CourseSchedule]] = {s.id: [] for s in students}
        for r in rows:
            other_courses[r.student_id].append(courses[r.course_id])

        return [
            EnrolledStudent(student_id=s.id, name=s.name, other_courses=other_courses[s.id])
            for s in students
        ]

    def find_enrollment(self, enrollment_id: int) -> Enrollment | None:
        return self.db.get(Enrollment, enrollment_id)

    def create_enrollments(self, student_id: int, course_ids: Sequence[int]) -> None:
        self.db.add_all(
            [Enrollment(student_id=student_id, course_id=cid) for cid in course_ids]
        )
        self.db.flush()

    def delete_enrollment(self, enrollment: Enrollment) -> None:
        self.db.delete(enrollment)
        self.db.flush()

    def replace_course_timetable(self, course_id: int, slots: Sequence[SlotCreate]) -> None:
        self.db.execute(delete(TimeSlot).where(TimeSlot.course_id == course_id))
        self.db.add_all(
            [
                TimeSlot(
                    course_id=course_id,
                    day_of_week=s.day_of_week,
                    start_time=s.start_time,
                    end_time=s.end_time,
                )
                for s in slots
            ]
        )
        self.db.flush()
        # bulk delete bypasses the identity map; drop any cached collection
        self.db.expire_all()

    def add_slot(self, course_id: int, slot: SlotCreate) -> int:
        row = TimeSlot(
            course_id=course_id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        self.db.add(row)
        self.db.flush()
        return row.id

    def update_slot(self, slot_id: int, slot: SlotCreate) -> None:
        row = self.db.get(TimeSlot, slot_id)
        row.day_of_week = slot.day_of_week
        row.start_time = slot.start_time
        row.end_time = slot.end_time
        self.db.flush()

    def delete_slot(self, slot_id: int) -> None:
        row = self.db.get(TimeSlot, slot_id)
        self.db.delete(row)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
