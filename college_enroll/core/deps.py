from fastapi import Depends
from sqlalchemy.orm import Session

from college_enroll.core.locks import get_schedule_locks
from college_enroll.db.session import SessionLocal
from college_enroll.repositories.schedule import SqlAlchemyScheduleRepository
from college_enroll.services.enrollment import EnrollmentCoordinator
from college_enroll.services.timetable_guard import TimetableMutationGuard


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyScheduleRepository:
    return SqlAlchemyScheduleRepository(db)


def get_enrollment_coordinator(
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
) -> EnrollmentCoordinator:
    return EnrollmentCoordinator(repo, get_schedule_locks())


def get_timetable_guard(
    repo: SqlAlchemyScheduleRepository = Depends(get_repository),
) -> TimetableMutationGuard:
    return TimetableMutationGuard(repo, get_schedule_locks())
