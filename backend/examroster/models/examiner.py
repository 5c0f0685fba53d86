from datetime import datetime
from enum import IntEnum

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from examroster.db.base import Base


class ExaminerType(IntEnum):
    lecturer = 0
    staff = 1
    volunteer = 2

    @property
    def label(self) -> str:
        return self.name


class ExaminerStatus(IntEnum):
    inactive = 0
    active = 1


class Examiner(Base):
    __tablename__ = "examiners"
    __table_args__ = (UniqueConstraint("semester_id", "email", name="uq_examiners_semester_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    semester_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type_examiner: Mapped[int] = mapped_column(Integer, nullable=False, default=ExaminerType.lecturer)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=ExaminerStatus.active)
    # Bumped by every commit that staffs this examiner; guards against concurrent double booking.
    booking_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def role(self) -> ExaminerType:
        return ExaminerType(self.type_examiner)

    @property
    def is_active(self) -> bool:
        return self.status == ExaminerStatus.active
