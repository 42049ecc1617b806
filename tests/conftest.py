import os

# keep the app's own engine off the project database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import time  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from college_enroll.core.deps import get_db  # noqa: E402
from college_enroll.core.locks import ScheduleLocks  # noqa: E402
from college_enroll.db.base import Base  # noqa: E402
from college_enroll.db.session import make_engine  # noqa: E402
from college_enroll.main import app  # noqa: E402
from college_enroll.models.college import College  # noqa: E402
from college_enroll.models.course import Course  # noqa: E402
from college_enroll.models.enrollment import Enrollment  # noqa: E402
from college_enroll.models.student import Student  # noqa: E402
from college_enroll.models.time_slot import TimeSlot  # noqa: E402
from college_enroll.repositories.schedule import SqlAlchemyScheduleRepository  # noqa: E402
from college_enroll.services.enrollment import EnrollmentCoordinator  # noqa: E402
from college_enroll.services.timetable_guard import TimetableMutationGuard  # noqa: E402

engine = make_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def hhmm(value: str) -> time:
    return time.fromisoformat(value)


def add_course(db, college_id: int, code: str, slots, name: str | None = None) -> Course:
    """Create a course with `slots` given as (day_of_week, "HH:MM", "HH:MM")."""
    course = Course(
        college_id=college_id,
        code=code,
        name=name or f"Course {code}",
        time_slots=[
            TimeSlot(day_of_week=day, start_time=hhmm(start), end_time=hhmm(end))
            for day, start, end in slots
        ],
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@pytest.fixture(autouse=True)
def fresh_schema():
    """Every test starts from an empty schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def seed_schedule(db) -> SimpleNamespace:
    """
    Engineering college:
      CS101 Mon 09:00-10:00   (student already enrolled)
      CS102 Mon 09:30-10:30   overlaps CS101
      CS103 Mon 10:00-11:00   touches CS101
      CS104 Tue 14:00-15:30
      CS105 Tue 15:00-16:00   overlaps CS104
    Arts college:
      AR101 Wed 09:00-10:00
    """
    eng = College(name="Engineering", code="ENG")
    arts = College(name="Arts", code="ART")
    db.add_all([eng, arts])
    db.commit()

    student = Student(college_id=eng.id, name="Asha Rao", student_number="ENG-001")
    other = Student(college_id=eng.id, name="Ravi Kumar", student_number="ENG-002")
    db.add_all([student, other])
    db.commit()

    cs101 = add_course(db, eng.id, "CS101", [(1, "09:00", "10:00")], name="Programming I")
    cs102 = add_course(db, eng.id, "CS102", [(1, "09:30", "10:30")], name="Discrete Maths")
    cs103 = add_course(db, eng.id, "CS103", [(1, "10:00", "11:00")], name="Digital Logic")
    cs104 = add_course(db, eng.id, "CS104", [(2, "14:00", "15:30")], name="Databases")
    cs105 = add_course(db, eng.id, "CS105", [(2, "15:00", "16:00")], name="Networks")
    ar101 = add_course(db, arts.id, "AR101", [(3, "09:00", "10:00")], name="Art History")

    db.add(Enrollment(student_id=student.id, course_id=cs101.id))
    db.commit()

    return SimpleNamespace(
        eng=eng.id,
        arts=arts.id,
        student=student.id,
        other=other.id,
        cs101=cs101.id,
        cs102=cs102.id,
        cs103=cs103.id,
        cs104=cs104.id,
        cs105=cs105.id,
        ar101=ar101.id,
    )


@pytest.fixture()
def seed(db):
    return seed_schedule(db)


@pytest.fixture()
def threaded_db(tmp_path):
    """
    File-backed database for tests that run services on several threads,
    each thread with its own session and connection. Yields the session
    factory and the seeded ids.
    """
    db_path = tmp_path / "threads.db"
    file_engine = make_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    session = factory()
    try:
        ids = seed_schedule(session)
    finally:
        session.close()

    yield factory, ids
    file_engine.dispose()


@pytest.fixture()
def repo(db):
    return SqlAlchemyScheduleRepository(db)


@pytest.fixture()
def coordinator(repo):
    return EnrollmentCoordinator(repo, ScheduleLocks())


@pytest.fixture()
def guard(repo):
    return TimetableMutationGuard(repo, ScheduleLocks())


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
