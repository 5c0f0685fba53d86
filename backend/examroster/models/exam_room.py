from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from examroster.db.base import Base


class ExamRoom(Base):
    """One room/session instance of a sub-slot; the unit of staffing work."""

    __tablename__ = "exam_rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sub_in_slot_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    room_ref: Mapped[str] = mapped_column(String(50), nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, nullable=False)
    examiner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_staffed(self) -> bool:
        return self.examiner_id is not None
