from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from examroster.db.base import Base


class Season(str, Enum):
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"

    @classmethod
    def for_month(cls, month: int) -> "Season":
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month {month}")
        if month <= 4:
            return cls.SPRING
        if month <= 8:
            return cls.SUMMER
        return cls.FALL


class Semester(Base):
    __tablename__ = "semesters"
    __table_args__ = (UniqueConstraint("season", "year", name="uq_semesters_season_year"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season: Mapped[Season] = mapped_column(SAEnum(Season, name="semester_season"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
