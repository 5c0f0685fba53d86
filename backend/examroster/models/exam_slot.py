from datetime import date

from sqlalchemy import Date, Integer
from sqlalchemy.orm import Mapped, mapped_column

from examroster.db.base import Base


class ExamSlot(Base):
    __tablename__ = "exam_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exam_phase_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
