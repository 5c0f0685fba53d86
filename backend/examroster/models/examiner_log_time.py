from datetime import date

from sqlalchemy import Date, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from examroster.db.base import Base


class ExaminerLogTime(Base):
    __tablename__ = "examiner_log_times"
    __table_args__ = (UniqueConstraint("examiner_id", "day", name="uq_examiner_log_times_examiner_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    examiner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    semester_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
