from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from examroster.core.exceptions import ResourceNotFoundError
from examroster.models.exam_phase import ExamPhase
from examroster.models.examiner_log_time import ExaminerLogTime


@dataclass(frozen=True)
class AvailabilityIndex:
    """Examiner -> available days inside one phase window.

    Built from `ExaminerLogTime` rows on every call and never stored, so it
    cannot drift from the availability records. Examiners without a row in
    the window are absent from the index.
    """

    phase_id: int
    start_day: date
    end_day: date
    days_by_examiner: dict[int, tuple[date, ...]] = field(default_factory=dict)
    semester_by_examiner: dict[int, int] = field(default_factory=dict)

    @classmethod
    def build(cls, db: Session, phase_id: int) -> "AvailabilityIndex":
        phase = db.get(ExamPhase, phase_id)
        if phase is None:
            raise ResourceNotFoundError("ExamPhase", phase_id)

        statement = (
            select(ExaminerLogTime)
            .where(ExaminerLogTime.day >= phase.start_day, ExaminerLogTime.day <= phase.end_day)
            .order_by(ExaminerLogTime.id)
        )
        grouped: dict[int, set[date]] = {}
        semesters: dict[int, int] = {}
        for row in db.execute(statement).scalars():
            grouped.setdefault(row.examiner_id, set()).add(row.day)
            semesters.setdefault(row.examiner_id, row.semester_id)

        return cls(
            phase_id=phase.id,
            start_day=phase.start_day,
            end_day=phase.end_day,
            days_by_examiner={examiner_id: tuple(sorted(days)) for examiner_id, days in grouped.items()},
            semester_by_examiner=semesters,
        )

    def is_available(self, examiner_id: int, day: date) -> bool:
        return day in self.days_by_examiner.get(examiner_id, ())

    def days_for(self, examiner_id: int) -> tuple[date, ...]:
        return self.days_by_examiner.get(examiner_id, ())

    def semester_for(self, examiner_id: int) -> int | None:
        return self.semester_by_examiner.get(examiner_id)

    @property
    def examiner_ids(self) -> list[int]:
        return sorted(self.days_by_examiner)

    def available_on(self, day: date) -> list[int]:
        return [examiner_id for examiner_id in self.examiner_ids if self.is_available(examiner_id, day)]

    def __len__(self) -> int:
        return len(self.days_by_examiner)
