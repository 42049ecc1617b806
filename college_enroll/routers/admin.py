from fastapi import APIRouter, Depends, status

from college_enroll.core.deps import (
    get_enrollment_coordinator,
    get_repository,
    get_timetable_guard,
)
from college_enroll.repositories.schedule import SqlAlchemyScheduleRepository
from college_enroll.schemas.timetable import (
    SlotCreate,
    SlotUpdate,
    TimetableOut,
    TimetableReplace,
)
from college_enroll.services.enrollment import EnrollmentCoordinator
from college_enroll.services.timetable_guard import TimetableMutationGuard

router = APIRouter()

_conflict_responses = {
    404: {"description": "Course or slot not found"},
    409: {"description": "Change would clash with the course or an enrolled student"},
}


def _timetable(repo: SqlAlchemyScheduleRepository, course_id: int) -> TimetableOut:
    course = repo.find_course(course_id)
    return TimetableOut(
        course_id=course.id,
        course_code=course.code,
        course_name=course.name,
        slots=course.time_slots,
    )


@router.put(
    "/courses/{course_id}/timetable",
    response_model=TimetableOut,
    responses=_conflict_responses,
)
def replace_timetable(
    course_id: int,
    payload: TimetableReplace,
    guard: TimetableMutationGuard = Depends(get_timetable_guard),
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
):
    guard.replace_timetable(course_id, payload.slots)
    return _timetable(repo, course_id)


@router.post(
    "/courses/{course_id}/timetable/slots",
    response_model=TimetableOut,
    status_code=status.HTTP_201_CREATED,
    responses=_conflict_responses,
)
def add_slot(
    course_id: int,
    payload: SlotCreate,
    guard: TimetableMutationGuard = Depends(get_timetable_guard),
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
):
    guard.add_slot(course_id, payload)
    return _timetable(repo, course_id)


@router.patch(
    "/timetable/slots/{slot_id}",
    response_model=TimetableOut,
    responses=_conflict_responses,
)
def update_slot(
    slot_id: int,
    payload: SlotUpdate,
    guard: TimetableMutationGuard = Depends(get_timetable_guard),
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
):
    course_id = guard.update_slot(slot_id, payload)
    return _timetable(repo, course_id)


@router.delete("/timetable/slots/{slot_id}", response_model=TimetableOut)
def delete_slot(
    slot_id: int,
    guard: TimetableMutationGuard = Depends(get_timetable_guard),
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
):
    course_id = guard.delete_slot(slot_id)
    return _timetable(repo, course_id)


@router.delete(
    "/students/{student_id}/enrollments/{enrollment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def remove_student_enrollment(
    student_id: int,
    enrollment_id: int,
    coordinator: EnrollmentCoordinator = Depends(get_enrollment_coordinator),
):
    coordinator.drop(student_id, enrollment_id)
