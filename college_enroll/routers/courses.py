import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from college_enroll.core.deps import get_db
from college_enroll.core.locks import get_schedule_locks
from college_enroll.core.errors import (
    CourseHasEnrollmentsError,
    DuplicateEntryError,
    DuplicateSlotError,
    NotFoundError,
    SlotOverlapError,
)
from college_enroll.models.college import College
from college_enroll.models.course import Course
from college_enroll.models.enrollment import Enrollment
from college_enroll.models.student import Student
from college_enroll.models.time_slot import TimeSlot
from college_enroll.schemas.course import CourseCreate, CourseRead, CourseStudentRow, CourseUpdate
from college_enroll.schemas.timetable import SlotRead, TimetableOut
from college_enroll.services.conflicts import detect_structural_conflicts

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course", course_id)
    return course


def _count_enrollments(db: Session, course_id: int) -> int:
    return (
        db.query(func.count(Enrollment.id))
        .filter(Enrollment.course_id == course_id)
        .scalar()
    ) or 0


@router.get("", response_model=list[CourseRead])
def list_courses(
    college_id: int | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    q = db.query(Course)
    if college_id is not None:
        q = q.filter(Course.college_id == college_id)
    if search:
        pattern = f"%{search}%"
        q = q.filter(
            Course.code.ilike(pattern)
            | Course.name.ilike(pattern)
            | Course.description.ilike(pattern)
        )
    return q.order_by(Course.code.asc(), Course.id.asc()).all()


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseCreate, db: Session = Depends(get_db)):
    if db.get(College, payload.college_id) is None:
        raise NotFoundError("College", payload.college_id)

    # a new course has nobody enrolled, only its own slots can clash
    clashes = detect_structural_conflicts(payload.time_slots, [])
    if clashes:
        if any(c.identical for c in clashes):
            raise DuplicateSlotError(None, clashes)
        raise SlotOverlapError(None, clashes)

    course = Course(
        college_id=payload.college_id,
        code=payload.code,
        name=payload.name,
        description=payload.description,
        time_slots=[
            TimeSlot(
                day_of_week=s.day_of_week,
                start_time=s.start_time,
                end_time=s.end_time,
            )
            for s in payload.time_slots
        ],
    )
    db.add(course)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEntryError("Course", "code")

    db.refresh(course)
    logger.info("Course %s created in college %s", course.code, course.college_id)
    return course


@router.get("/{course_id}", response_model=CourseRead)
def get_course(course_id: int, db: Session = Depends(get_db)):
    return _ensure_course_exists(db, course_id)


@router.patch("/{course_id}", response_model=CourseRead)
def update_course(course_id: int, payload: CourseUpdate, db: Session = Depends(get_db)):
    course = _ensure_course_exists(db, course_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(course, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEntryError("Course", "code")

    db.refresh(course)
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: int, db: Session = Depends(get_db)):
    # enrolling takes the course lock, so in one process the count cannot go stale
    with get_schedule_locks().hold(courses=[course_id]):
        course = _ensure_course_exists(db, course_id)

        enrolled = _count_enrollments(db, course_id)
        if enrolled:
            raise CourseHasEnrollmentsError(course_id, enrolled)

        db.delete(course)
        try:
            db.commit()
        except IntegrityError:
            # another process enrolled someone after the count
            db.rollback()
            logger.warning("Course %s gained enrollments while being deleted", course_id)
            raise CourseHasEnrollmentsError(course_id, _count_enrollments(db, course_id))

    logger.info("Course %s deleted", course_id)


@router.get("/{course_id}/timetable", response_model=TimetableOut)
def course_timetable(course_id: int, db: Session = Depends(get_db)):
    course = _ensure_course_exists(db, course_id)
    return TimetableOut(
        course_id=course.id,
        course_code=course.code,
        course_name=course.name,
        slots=[SlotRead.model_validate(s) for s in course.time_slots],
    )


@router.get("/{course_id}/students", response_model=list[CourseStudentRow])
def enrolled_students(course_id: int, db: Session = Depends(get_db)):
    _ensure_course_exists(db, course_id)

    rows = (
        db.query(
            Student.id.label("student_id"),
            Student.name,
            Student.student_number,
            Enrollment.created_at.label("enrolled_at"),
        )
        .join(Enrollment, Enrollment.student_id == Student.id)
        .filter(Enrollment.course_id == course_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        .all()
    )
    return [dict(r._mapping) for r in rows]
