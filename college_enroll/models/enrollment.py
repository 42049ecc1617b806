from sqlalchemy import DDL, Column, DateTime, ForeignKey, Integer, UniqueConstraint, event, func
from sqlalchemy.orm import relationship

from college_enroll.db.base_class import Base


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", name="uq_enrollments_student_course"
        ),
    )

    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")


# Same statement as alembic revision 7c21d0e4b9a3; create_all only covers SQLite.
SAME_COLLEGE_TRIGGER_SQLITE = """
CREATE TRIGGER IF NOT EXISTS trg_enrollments_same_college
BEFORE INSERT ON enrollments
FOR EACH ROW
WHEN (SELECT college_id FROM students WHERE id = NEW.student_id)
  != (SELECT college_id FROM courses WHERE id = NEW.course_id)
BEGIN
    SELECT RAISE(ABORT, 'Student and course must belong to the same college');
END
"""

event.listen(
    Enrollment.__table__,
    "after_create",
    DDL(SAME_COLLEGE_TRIGGER_SQLITE).execute_if(dialect="sqlite"),
)
