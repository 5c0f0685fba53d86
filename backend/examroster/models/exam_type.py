from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from examroster.db.base import Base

MAKEUP_DES = 1


class ExamType(Base):
    __tablename__ = "exam_types"
    __table_args__ = (UniqueConstraint("type", "block", "des", name="uq_exam_types_type_block_des"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    block: Mapped[int] = mapped_column(Integer, nullable=False)
    # 0 is a normal sitting, 1 is the make-up variant
    des: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def is_makeup(self) -> bool:
        return self.des == MAKEUP_DES
