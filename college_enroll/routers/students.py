from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from college_enroll.core.deps import get_db
from college_enroll.core.errors import DuplicateEntryError, NotFoundError
from college_enroll.models.college import College
from college_enroll.models.course import Course
from college_enroll.models.enrollment import Enrollment
from college_enroll.models.student import Student
from college_enroll.schemas.course import CourseRead
from college_enroll.schemas.student import StudentCreate, StudentProfile, StudentRead
from college_enroll.schemas.timetable import (
    DAY_NAMES,
    DaySchedule,
    ScheduledSession,
    StudentTimetable,
)

router = APIRouter()


def _ensure_student_exists(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError("Student", student_id)
    return student


@router.get("", response_model=list[StudentRead])
def list_students(
    college_id: int | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    q = db.query(Student)
    if college_id is not None:
        q = q.filter(Student.college_id == college_id)
    if search:
        pattern = f"%{search}%"
        q = q.filter(Student.name.ilike(pattern) | Student.student_number.ilike(pattern))
    return q.order_by(Student.student_number.asc(), Student.id.asc()).all()


@router.post("", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    if db.get(College, payload.college_id) is None:
        raise NotFoundError("College", payload.college_id)

    student = Student(
        college_id=payload.college_id,
        name=payload.name,
        student_number=payload.student_number,
    )
    db.add(student)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEntryError("Student", "student_number")

    db.refresh(student)
    return student


@router.get("/{student_id}", response_model=StudentProfile)
def get_student(student_id: int, db: Session = Depends(get_db)):
    student = _ensure_student_exists(db, student_id)
    total = (
        db.query(func.count(Enrollment.id))
        .filter(Enrollment.student_id == student_id)
        .scalar()
    ) or 0
    return {
        "id": student.id,
        "college_id": student.college_id,
        "name": student.name,
        "student_number": student.student_number,
        "total_enrollments": int(total),
        "joined_at": student.created_at,
    }


@router.get("/{student_id}/timetable", response_model=StudentTimetable)
def student_timetable(student_id: int, db: Session = Depends(get_db)):
    """Weekly timetable, one entry per weekday (1 = Monday), sessions by start time."""
    student = _ensure_student_exists(db, student_id)

    days: dict[int, list[ScheduledSession]] = {d: [] for d in DAY_NAMES}
    for enrollment in student.enrollments:
        course = enrollment.course
        for slot in course.time_slots:
            days[slot.day_of_week].append(
                ScheduledSession(
                    course_id=course.id,
                    course_code=course.code,
                    course_name=course.name,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
            )

    return StudentTimetable(
        student_id=student.id,
        student_name=student.name,
        days=[
            DaySchedule(
                day_of_week=d,
                day=DAY_NAMES[d],
                sessions=sorted(sessions, key=lambda s: s.start_time),
            )
            for d, sessions in days.items()
        ],
    )


@router.get("/{student_id}/available-courses", response_model=list[CourseRead])
def available_courses(
    student_id: int,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    """Courses of the student's college the student is not enrolled in yet."""
    student = _ensure_student_exists(db, student_id)

    enrolled = select(Enrollment.course_id).where(Enrollment.student_id == student_id)
    q = db.query(Course).filter(
        Course.college_id == student.college_id,
        Course.id.not_in(enrolled),
    )
    if search:
        pattern = f"%{search}%"
        q = q.filter(Course.code.ilike(pattern) | Course.name.ilike(pattern))
    return q.order_by(Course.code.asc()).all()
