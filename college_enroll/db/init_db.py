from college_enroll.db.base import Base
from college_enroll.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
