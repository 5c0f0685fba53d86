from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from examroster.db.base import Base


def _to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class SubInSlot(Base):
    __tablename__ = "sub_in_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exam_slot_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    @property
    def window(self) -> tuple[int, int] | None:
        if not self.start_time or not self.end_time:
            return None
        return _to_minutes(self.start_time), _to_minutes(self.end_time)

    def is_compatible_with(self, other: "SubInSlot") -> bool:
        """Two sub-slots can share an examiner only with distinct, non-overlapping windows."""
        if self.id == other.id:
            return False
        mine, theirs = self.window, other.window
        if mine is None or theirs is None:
            return False
        return max(mine[0], theirs[0]) >= min(mine[1], theirs[1])
