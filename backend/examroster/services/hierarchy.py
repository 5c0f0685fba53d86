"""Read/write access to Semester -> ExamPhase -> ExamSlot -> SubInSlot -> ExamRoom.

Only existence checks and date-window invariants live here; staffing rules
belong to the assignment and registration services.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
from typing import TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from examroster.core.exceptions import ConflictError, ResourceNotFoundError
from examroster.db.base import Base
from examroster.models.exam_phase import ExamPhase
from examroster.models.exam_room import ExamRoom
from examroster.models.exam_slot import ExamSlot
from examroster.models.exam_type import ExamType
from examroster.models.examiner import Examiner, ExaminerStatus, ExaminerType
from examroster.models.examiner_log_time import ExaminerLogTime
from examroster.models.semester import Season, Semester
from examroster.models.sub_in_slot import SubInSlot

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@dataclass(frozen=True)
class PhaseDetail:
    id: int
    semester_id: int
    season: Season
    year: int
    exam_type_id: int
    type: str
    block: int
    des: int
    start_day: date
    end_day: date


@dataclass(frozen=True)
class RoomContext:
    room: ExamRoom
    sub_slot: SubInSlot
    slot: ExamSlot
    phase: ExamPhase

    @property
    def day(self) -> date:
        return self.slot.day


class HierarchyStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _require(self, model: type[ModelT], entity_id: int, label: str) -> ModelT:
        instance = self.db.get(model, entity_id)
        if instance is None:
            raise ResourceNotFoundError(label, entity_id)
        return instance

    def require_semester(self, semester_id: int) -> Semester:
        return self._require(Semester, semester_id, "Semester")

    def require_exam_type(self, exam_type_id: int) -> ExamType:
        return self._require(ExamType, exam_type_id, "ExamType")

    def require_phase(self, phase_id: int) -> ExamPhase:
        return self._require(ExamPhase, phase_id, "ExamPhase")

    def require_slot(self, slot_id: int) -> ExamSlot:
        return self._require(ExamSlot, slot_id, "ExamSlot")

    def require_sub_slot(self, sub_slot_id: int) -> SubInSlot:
        return self._require(SubInSlot, sub_slot_id, "SubInSlot")

    def require_room(self, room_id: int) -> ExamRoom:
        return self._require(ExamRoom, room_id, "ExamRoom")

    def require_examiner(self, examiner_id: int) -> Examiner:
        return self._require(Examiner, examiner_id, "Examiner")

    # Semesters

    def list_semesters(self) -> list[Semester]:
        return list(self.db.execute(select(Semester).order_by(Semester.year, Semester.id)).scalars())

    def create_semester(self, *, season: Season, year: int) -> Semester:
        semester = Semester(season=season, year=year)
        self.db.add(semester)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"Semester {season.value} {year} already exists") from exc
        self.db.refresh(semester)
        return semester

    def delete_semester(self, semester_id: int, *, today: date | None = None) -> None:
        semester = self.require_semester(semester_id)
        today = today or date.today()
        if semester.year != today.year:
            raise ConflictError(
                "Only semesters of the current year can be deleted",
                details={"semester_year": semester.year, "current_year": today.year},
            )
        phase_ids = list(
            self.db.execute(select(ExamPhase.id).where(ExamPhase.semester_id == semester_id)).scalars()
        )
        self._delete_phases(phase_ids)
        self._bulk_delete(ExaminerLogTime, ExaminerLogTime.semester_id == semester_id)
        self._bulk_delete(Examiner, Examiner.semester_id == semester_id)
        self.db.delete(semester)
        self.db.commit()
        logger.info("Deleted semester %s with %d phase(s)", semester_id, len(phase_ids))

    # Exam types and phases

    def list_exam_types(self) -> list[ExamType]:
        statement = select(ExamType).order_by(ExamType.type, ExamType.block.desc(), ExamType.des)
        return list(self.db.execute(statement).scalars())

    def create_phase(self, *, semester_id: int, exam_type_id: int, start_day: date, end_day: date) -> ExamPhase:
        self.require_semester(semester_id)
        self.require_exam_type(exam_type_id)
        _check_window(start_day, end_day)
        phase = ExamPhase(
            semester_id=semester_id,
            exam_type_id=exam_type_id,
            start_day=start_day,
            end_day=end_day,
        )
        self.db.add(phase)
        self.db.commit()
        self.db.refresh(phase)
        return phase

    def update_phase(
        self,
        phase_id: int,
        *,
        exam_type_id: int | None = None,
        start_day: date | None = None,
        end_day: date | None = None,
    ) -> ExamPhase:
        phase = self.require_phase(phase_id)
        if exam_type_id is not None:
            self.require_exam_type(exam_type_id)
        new_start = start_day or phase.start_day
        new_end = end_day or phase.end_day
        _check_window(new_start, new_end)

        outside = self.db.execute(
            select(func.count(ExamSlot.id)).where(
                ExamSlot.exam_phase_id == phase_id,
                (ExamSlot.day < new_start) | (ExamSlot.day > new_end),
            )
        ).scalar_one()
        if outside:
            raise ConflictError(
                "New phase window would leave existing slots outside of it",
                details={"slots_outside": outside},
            )
        if exam_type_id is not None:
            phase.exam_type_id = exam_type_id
        phase.start_day = new_start
        phase.end_day = new_end
        self.db.commit()
        self.db.refresh(phase)
        return phase

    def delete_phase(self, phase_id: int) -> None:
        self.require_phase(phase_id)
        self._delete_phases([phase_id])
        self.db.commit()

    def list_phases(self, semester_id: int | None = None) -> list[PhaseDetail]:
        statement = (
            select(ExamPhase, Semester, ExamType)
            .join(Semester, Semester.id == ExamPhase.semester_id)
            .join(ExamType, ExamType.id == ExamPhase.exam_type_id)
            .order_by(ExamPhase.start_day, ExamPhase.id)
        )
        if semester_id is not None:
            statement = statement.where(ExamPhase.semester_id == semester_id)
        return [
            PhaseDetail(
                id=phase.id,
                semester_id=semester.id,
                season=semester.season,
                year=semester.year,
                exam_type_id=exam_type.id,
                type=exam_type.type,
                block=exam_type.block,
                des=exam_type.des,
                start_day=phase.start_day,
                end_day=phase.end_day,
            )
            for phase, semester, exam_type in self.db.execute(statement).all()
        ]

    # Slots and sub-slots

    def list_slots(self, phase_id: int) -> list[ExamSlot]:
        statement = select(ExamSlot).where(ExamSlot.exam_phase_id == phase_id).order_by(ExamSlot.day, ExamSlot.id)
        return list(self.db.execute(statement).scalars())

    def create_slot(self, *, phase_id: int, day: date) -> ExamSlot:
        phase = self.require_phase(phase_id)
        if not phase.covers(day):
            raise ConflictError(
                f"Slot day {day.isoformat()} is outside the phase window",
                details={"start_day": phase.start_day.isoformat(), "end_day": phase.end_day.isoformat()},
            )
        slot = ExamSlot(exam_phase_id=phase_id, day=day)
        self.db.add(slot)
        self.db.commit()
        self.db.refresh(slot)
        return slot

    def delete_slot(self, slot_id: int) -> None:
        self.require_slot(slot_id)
        self._delete_slots([slot_id])
        self.db.commit()

    def list_sub_slots(self, slot_id: int) -> list[SubInSlot]:
        statement = select(SubInSlot).where(SubInSlot.exam_slot_id == slot_id).order_by(SubInSlot.id)
        return list(self.db.execute(statement).scalars())

    def create_sub_slot(
        self,
        *,
        slot_id: int,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> SubInSlot:
        self.require_slot(slot_id)
        sub_slot = SubInSlot(exam_slot_id=slot_id, start_time=start_time, end_time=end_time)
        self.db.add(sub_slot)
        self.db.commit()
        self.db.refresh(sub_slot)
        return sub_slot

    def delete_sub_slot(self, sub_slot_id: int) -> None:
        self.require_sub_slot(sub_slot_id)
        self._delete_sub_slots([sub_slot_id])
        self.db.commit()

    # Rooms

    def rooms_for_slot(self, slot_id: int, *, unstaffed_only: bool = False) -> list[ExamRoom]:
        statement = (
            select(ExamRoom)
            .join(SubInSlot, SubInSlot.id == ExamRoom.sub_in_slot_id)
            .where(SubInSlot.exam_slot_id == slot_id)
            .order_by(SubInSlot.id, ExamRoom.id)
        )
        if unstaffed_only:
            statement = statement.where(ExamRoom.examiner_id.is_(None))
        return list(self.db.execute(statement).scalars())

    def rooms_for_phase(self, phase_id: int) -> list[ExamRoom]:
        statement = (
            select(ExamRoom)
            .join(SubInSlot, SubInSlot.id == ExamRoom.sub_in_slot_id)
            .join(ExamSlot, ExamSlot.id == SubInSlot.exam_slot_id)
            .where(ExamSlot.exam_phase_id == phase_id)
            .order_by(ExamSlot.day, SubInSlot.id, ExamRoom.id)
        )
        return list(self.db.execute(statement).scalars())

    def rooms_by_slot_for_phase(self, phase_id: int) -> list[tuple[ExamSlot, list[ExamRoom]]]:
        rooms_by_slot: dict[int, list[ExamRoom]] = {}
        statement = (
            select(ExamSlot.id, ExamRoom)
            .join(SubInSlot, SubInSlot.id == ExamRoom.sub_in_slot_id)
            .join(ExamSlot, ExamSlot.id == SubInSlot.exam_slot_id)
            .where(ExamSlot.exam_phase_id == phase_id)
            .order_by(SubInSlot.id, ExamRoom.id)
        )
        for slot_id, room in self.db.execute(statement).all():
            rooms_by_slot.setdefault(slot_id, []).append(room)
        return [(slot, rooms_by_slot.get(slot.id, [])) for slot in self.list_slots(phase_id)]

    def room_context(self, room_id: int) -> RoomContext:
        room = self.require_room(room_id)
        sub_slot = self.require_sub_slot(room.sub_in_slot_id)
        slot = self.require_slot(sub_slot.exam_slot_id)
        phase = self.require_phase(slot.exam_phase_id)
        return RoomContext(room=room, sub_slot=sub_slot, slot=slot, phase=phase)

    def examiner_bookings_on(
        self,
        examiner_id: int,
        day: date,
        *,
        exclude_room_id: int | None = None,
    ) -> list[tuple[ExamRoom, SubInSlot]]:
        statement = (
            select(ExamRoom, SubInSlot)
            .join(SubInSlot, SubInSlot.id == ExamRoom.sub_in_slot_id)
            .join(ExamSlot, ExamSlot.id == SubInSlot.exam_slot_id)
            .where(ExamRoom.examiner_id == examiner_id, ExamSlot.day == day)
            .order_by(ExamRoom.id)
        )
        if exclude_room_id is not None:
            statement = statement.where(ExamRoom.id != exclude_room_id)
        return [(room, sub_slot) for room, sub_slot in self.db.execute(statement).all()]

    def rooms_held_by(self, examiner_id: int) -> list[ExamRoom]:
        statement = select(ExamRoom).where(ExamRoom.examiner_id == examiner_id).order_by(ExamRoom.id)
        return list(self.db.execute(statement).scalars())

    # Examiners and availability

    def list_examiners(self, semester_id: int) -> list[Examiner]:
        statement = select(Examiner).where(Examiner.semester_id == semester_id).order_by(Examiner.id)
        return list(self.db.execute(statement).scalars())

    def examiner_by_email(self, semester_id: int, email: str) -> Examiner | None:
        statement = select(Examiner).where(
            Examiner.semester_id == semester_id,
            func.lower(Examiner.email) == email.strip().lower(),
        )
        return self.db.execute(statement).scalar_one_or_none()

    def examiner_for_identity(
        self, semester_id: int, email: str, examiner_id: int | None = None
    ) -> Examiner | None:
        """Resolve a caller to their examiner row in a semester.

        An explicit examiner id wins when it names an examiner of that semester;
        otherwise the email is matched. Examiner rows are per semester, so an id
        from another semester falls back to the email lookup.
        """
        if examiner_id is not None:
            examiner = self.db.get(Examiner, examiner_id)
            if examiner is not None and examiner.semester_id == semester_id:
                return examiner
        return self.examiner_by_email(semester_id, email)

    def create_examiner(
        self,
        *,
        semester_id: int,
        email: str,
        name: str,
        type_examiner: ExaminerType = ExaminerType.lecturer,
        status: ExaminerStatus = ExaminerStatus.active,
    ) -> Examiner:
        self.require_semester(semester_id)
        if self.examiner_by_email(semester_id, email) is not None:
            raise ConflictError(f"Examiner {email} already exists in semester {semester_id}")
        examiner = Examiner(
            semester_id=semester_id,
            email=email.strip().lower(),
            name=name,
            type_examiner=int(type_examiner),
            status=int(status),
        )
        self.db.add(examiner)
        self.db.commit()
        self.db.refresh(examiner)
        return examiner

    def list_availability(self, examiner_id: int) -> list[date]:
        statement = (
            select(ExaminerLogTime.day)
            .where(ExaminerLogTime.examiner_id == examiner_id)
            .order_by(ExaminerLogTime.day)
        )
        return list(self.db.execute(statement).scalars())

    def add_availability(self, examiner_id: int, day: date) -> ExaminerLogTime:
        examiner = self.require_examiner(examiner_id)
        existing = self.db.execute(
            select(ExaminerLogTime).where(ExaminerLogTime.examiner_id == examiner_id, ExaminerLogTime.day == day)
        ).scalar_one_or_none()
        if existing is not None:
            return existing
        row = ExaminerLogTime(examiner_id=examiner_id, semester_id=examiner.semester_id, day=day)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def remove_availability(self, examiner_id: int, day: date) -> bool:
        self.require_examiner(examiner_id)
        result = self._bulk_delete(
            ExaminerLogTime,
            (ExaminerLogTime.examiner_id == examiner_id) & (ExaminerLogTime.day == day),
        )
        self.db.commit()
        return result > 0

    # Cascades

    def _bulk_delete(self, model: type[Base], criteria) -> int:
        result = self.db.execute(delete(model).where(criteria).execution_options(synchronize_session=False))
        return result.rowcount or 0

    def _delete_sub_slots(self, sub_slot_ids: list[int]) -> None:
        if not sub_slot_ids:
            return
        removed = self._bulk_delete(ExamRoom, ExamRoom.sub_in_slot_id.in_(sub_slot_ids))
        self._bulk_delete(SubInSlot, SubInSlot.id.in_(sub_slot_ids))
        logger.debug("Removed %d sub-slot(s) and %d room(s)", len(sub_slot_ids), removed)

    def _delete_slots(self, slot_ids: list[int]) -> None:
        if not slot_ids:
            return
        sub_slot_ids = list(
            self.db.execute(select(SubInSlot.id).where(SubInSlot.exam_slot_id.in_(slot_ids))).scalars()
        )
        self._delete_sub_slots(sub_slot_ids)
        self._bulk_delete(ExamSlot, ExamSlot.id.in_(slot_ids))

    def _delete_phases(self, phase_ids: list[int]) -> None:
        if not phase_ids:
            return
        slot_ids = list(
            self.db.execute(select(ExamSlot.id).where(ExamSlot.exam_phase_id.in_(phase_ids))).scalars()
        )
        self._delete_slots(slot_ids)
        self._bulk_delete(ExamPhase, ExamPhase.id.in_(phase_ids))


def _check_window(start_day: date, end_day: date) -> None:
    if start_day > end_day:
        raise ConflictError(
            "Phase start day must not be after its end day",
            details={"start_day": start_day.isoformat(), "end_day": end_day.isoformat()},
        )
