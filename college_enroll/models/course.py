from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from college_enroll.db.base_class import Base


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    college_id: Mapped[int] = mapped_column(
        ForeignKey("colleges.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("college_id", "code", name="uq_courses_college_code"),
    )

    college = relationship("College", back_populates="courses")

    # enrollments block deletion instead of cascading (see routers/courses.py)
    enrollments = relationship("Enrollment", back_populates="course", passive_deletes="all")

    time_slots = relationship(
        "TimeSlot",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="[TimeSlot.day_of_week, TimeSlot.start_time]",
    )
