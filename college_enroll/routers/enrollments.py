from datetime import timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from college_enroll.core.config import get_settings
from college_enroll.core.deps import get_db, get_enrollment_coordinator
from college_enroll.core.errors import NotFoundError
from college_enroll.models.course import Course
from college_enroll.models.enrollment import Enrollment
from college_enroll.models.student import Student
from college_enroll.schemas.enrollment import (
    ConflictCheckResult,
    EnrollmentCreate,
    EnrollmentOut,
    EnrollmentResult,
)
from college_enroll.services.enrollment import EnrollmentCoordinator

router = APIRouter()


@router.post(
    "",
    response_model=EnrollmentResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Course belongs to another college"},
        404: {"description": "Student or course not found"},
        409: {"description": "Timetable clash"},
    },
)
def enroll(
    payload: EnrollmentCreate,
    coordinator: EnrollmentCoordinator = Depends(get_enrollment_coordinator),
):
    """Enroll in every requested course or in none of them."""
    return coordinator.enroll(payload.student_id, payload.course_ids)


@router.post("/check-conflicts", response_model=ConflictCheckResult)
def check_conflicts(
    payload: EnrollmentCreate,
    coordinator: EnrollmentCoordinator = Depends(get_enrollment_coordinator),
):
    conflicts = coordinator.check_conflicts(payload.student_id, payload.course_ids)
    return ConflictCheckResult(has_conflicts=bool(conflicts), conflicts=conflicts)


@router.get("/students/{student_id}", response_model=list[EnrollmentOut])
def enrollment_history(student_id: int, db: Session = Depends(get_db)):
    if db.get(Student, student_id) is None:
        raise NotFoundError("Student", student_id)

    rows = (
        db.query(Enrollment, Course)
        .join(Course, Course.id == Enrollment.course_id)
        .filter(Enrollment.student_id == student_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        .all()
    )

    zone = ZoneInfo(get_settings().timezone)
    result: list[dict] = []
    for enrollment, course in rows:
        enrolled_at = enrollment.created_at
        # SQLite often returns naive datetimes; treat as UTC
        if enrolled_at.tzinfo is None:
            enrolled_at = enrolled_at.replace(tzinfo=timezone.utc)

        result.append(
            {
                "id": enrollment.id,
                "student_id": enrollment.student_id,
                "course_id": course.id,
                "course_code": course.code,
                "course_name": course.name,
                "enrolled_at": enrolled_at.astimezone(zone),
            }
        )
    return result


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
def drop_enrollment(
    enrollment_id: int,
    student_id: int,
    coordinator: EnrollmentCoordinator = Depends(get_enrollment_coordinator),
):
    coordinator.drop(student_id, enrollment_id)
