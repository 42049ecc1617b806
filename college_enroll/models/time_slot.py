from datetime import datetime, time

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, SmallInteger, Time, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from college_enroll.db.base_class import Base


class TimeSlot(Base):
    """One weekly class meeting. day_of_week is ISO: 1 = Monday ... 7 = Sunday."""

    __tablename__ = "time_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_time_slots_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_time_slots_range"),
    )

    course = relationship("Course", back_populates="time_slots")
