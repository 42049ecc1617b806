from college_enroll.db.base_class import Base

# import models so SQLAlchemy registers them
from college_enroll.models import college, course, enrollment, student, time_slot  # noqa: F401

__all__ = ["Base"]
