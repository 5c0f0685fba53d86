"""Examiner allocation for exam room assignments.

Every write to `exam_rooms.examiner_id` goes through `AssignmentEngine.commit`,
a compare-and-set keyed on the room's current examiner and, when staffing, on
the examiner's `booking_version`. Two callers that both saw a room free, or
both saw an examiner free on the same day, cannot both succeed: the loser's
conditional update matches no row and the call fails with a conflict.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from examroster.core.config import Settings, get_settings
from examroster.core.exceptions import (
    ConflictError,
    InternalServiceError,
    UnavailableError,
    storage_guard,
)
from examroster.models.exam_phase import ExamPhase
from examroster.models.exam_room import ExamRoom
from examroster.models.exam_type import ExamType
from examroster.models.examiner import Examiner, ExaminerType
from examroster.services.audit import log_activity
from examroster.services.availability import AvailabilityIndex
from examroster.services.hierarchy import HierarchyStore, RoomContext

logger = logging.getLogger(__name__)


class RoomAlreadyStaffedError(ConflictError):
    """The room holds (or just gained) another examiner and the caller may not replace them."""


@dataclass(frozen=True)
class BookingTicket:
    room_id: int
    examiner_id: int | None
    expected_examiner_id: int | None
    expected_booking_version: int | None = None


@dataclass
class AutoFillSummary:
    slot_id: int
    assigned_room_ids: list[int] = field(default_factory=list)
    unstaffed_room_ids: list[int] = field(default_factory=list)
    skipped_room_ids: list[int] = field(default_factory=list)
    failed_room_ids: list[int] = field(default_factory=list)

    @property
    def assigned(self) -> int:
        return len(self.assigned_room_ids)

    @property
    def unstaffed(self) -> int:
        return len(self.unstaffed_room_ids) + len(self.failed_room_ids)


class AssignmentEngine:
    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = HierarchyStore(db)

    # Eligibility

    def is_role_compatible(self, examiner: Examiner, phase: ExamPhase) -> bool:
        if examiner.role != ExaminerType.volunteer or self.settings.allow_volunteers_in_makeup:
            return True
        exam_type = self.db.get(ExamType, phase.exam_type_id)
        return exam_type is None or not exam_type.is_makeup

    def check_eligibility(
        self,
        context: RoomContext,
        examiner: Examiner,
        *,
        index: AvailabilityIndex | None = None,
    ) -> None:
        phase = context.phase
        if examiner.semester_id != phase.semester_id:
            raise ConflictError(
                f"Examiner {examiner.id} does not belong to semester {phase.semester_id}",
                details={"examiner_semester_id": examiner.semester_id},
            )
        if not examiner.is_active:
            raise ConflictError(f"Examiner {examiner.id} is not active")
        if not self.is_role_compatible(examiner, phase):
            raise ConflictError(
                f"A {examiner.role.label} cannot staff this exam phase",
                details={"role": examiner.role.label, "phase_id": phase.id},
            )

        index = index or AvailabilityIndex.build(self.db, phase.id)
        if not index.is_available(examiner.id, context.day):
            raise UnavailableError(
                f"Examiner {examiner.id} has not declared availability on {context.day.isoformat()}",
                details={"examiner_id": examiner.id, "day": context.day.isoformat()},
            )

        for other_room, other_sub_slot in self.store.examiner_bookings_on(
            examiner.id, context.day, exclude_room_id=context.room.id
        ):
            if not context.sub_slot.is_compatible_with(other_sub_slot):
                raise ConflictError(
                    f"Examiner {examiner.id} already holds room assignment {other_room.id} on "
                    f"{context.day.isoformat()}",
                    details={"conflicting_room_id": other_room.id},
                )

    def prepare_assignment(
        self,
        room_id: int,
        examiner_id: int,
        *,
        replace: bool = True,
        index: AvailabilityIndex | None = None,
    ) -> BookingTicket:
        context = self.store.room_context(room_id)
        current = context.room.examiner_id
        if current == examiner_id:
            raise ConflictError(f"Examiner {examiner_id} is already assigned to room assignment {room_id}")
        if current is not None and not replace:
            raise RoomAlreadyStaffedError(
                f"Room assignment {room_id} is already staffed",
                details={"examiner_id": current},
            )

        examiner = self.store.require_examiner(examiner_id)
        self.check_eligibility(context, examiner, index=index)
        return BookingTicket(
            room_id=room_id,
            examiner_id=examiner_id,
            expected_examiner_id=current,
            expected_booking_version=examiner.booking_version,
        )

    # Commit

    def commit(self, ticket: BookingTicket, *, action: str, actor: str | None = None) -> ExamRoom:
        with storage_guard(self.db, action):
            if ticket.examiner_id is not None:
                bumped = self.db.execute(
                    update(Examiner)
                    .where(
                        Examiner.id == ticket.examiner_id,
                        Examiner.booking_version == ticket.expected_booking_version,
                    )
                    .values(booking_version=Examiner.booking_version + 1)
                    .execution_options(synchronize_session=False)
                ).rowcount
                if bumped != 1:
                    self.db.rollback()
                    raise ConflictError(
                        f"Examiner {ticket.examiner_id} was booked concurrently; retry the request",
                        details={"examiner_id": ticket.examiner_id},
                    )

            if ticket.expected_examiner_id is None:
                expected = ExamRoom.examiner_id.is_(None)
            else:
                expected = ExamRoom.examiner_id == ticket.expected_examiner_id
            updated = self.db.execute(
                update(ExamRoom)
                .where(ExamRoom.id == ticket.room_id, expected)
                .values(examiner_id=ticket.examiner_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if updated != 1:
                self.db.rollback()
                raise RoomAlreadyStaffedError(
                    f"Room assignment {ticket.room_id} changed concurrently",
                    details={"room_id": ticket.room_id},
                )

            log_activity(
                self.db,
                actor=actor,
                action=action,
                entity_type="exam_room",
                entity_id=ticket.room_id,
                details={
                    "examiner_id": ticket.examiner_id,
                    "previous_examiner_id": ticket.expected_examiner_id,
                },
            )
            self.db.commit()
            room = self.store.require_room(ticket.room_id)
            self.db.refresh(room)
        logger.info(
            "%s: room assignment %s examiner %s -> %s",
            action,
            ticket.room_id,
            ticket.expected_examiner_id,
            ticket.examiner_id,
        )
        return room

    # Operations

    def assign_examiner(self, room_id: int, examiner_id: int, *, actor: str | None = None) -> ExamRoom:
        with storage_guard(self.db, "exam_room.assign"):
            ticket = self.prepare_assignment(room_id, examiner_id)
        return self.commit(ticket, action="exam_room.assign", actor=actor)

    def release_examiner(self, room_id: int, *, actor: str | None = None) -> ExamRoom:
        with storage_guard(self.db, "exam_room.release"):
            room = self.store.require_room(room_id)
            if room.examiner_id is None:
                return room
            previous = room.examiner_id
            room.examiner_id = None
            log_activity(
                self.db,
                actor=actor,
                action="exam_room.release",
                entity_type="exam_room",
                entity_id=room_id,
                details={"previous_examiner_id": previous},
            )
            self.db.commit()
            self.db.refresh(room)
        logger.info("Released examiner %s from room assignment %s", previous, room_id)
        return room

    def phase_loads(self, phase_id: int) -> Counter[int]:
        return Counter(
            room.examiner_id for room in self.store.rooms_for_phase(phase_id) if room.examiner_id is not None
        )

    def eligible_examiners(self, room_id: int) -> list[Examiner]:
        with storage_guard(self.db, "exam_room.eligible_examiners"):
            context = self.store.room_context(room_id)
            index = AvailabilityIndex.build(self.db, context.phase.id)
            loads = self.phase_loads(context.phase.id)
            eligible: list[Examiner] = []
            for examiner in self.store.list_examiners(context.phase.semester_id):
                if examiner.id == context.room.examiner_id:
                    continue
                try:
                    self.check_eligibility(context, examiner, index=index)
                except (ConflictError, UnavailableError):
                    continue
                eligible.append(examiner)
        return sorted(eligible, key=lambda item: (loads.get(item.id, 0), item.id))

    def available_examiners_for_slot(self, slot_id: int) -> list[Examiner]:
        """Examiners who could take a room in this slot: available that day and not yet booked on it."""
        with storage_guard(self.db, "exam_slot.available_examiners"):
            slot = self.store.require_slot(slot_id)
            phase = self.store.require_phase(slot.exam_phase_id)
            index = AvailabilityIndex.build(self.db, phase.id)
            loads = self.phase_loads(phase.id)
            candidates = [
                examiner
                for examiner in self.store.list_examiners(phase.semester_id)
                if examiner.is_active
                and self.is_role_compatible(examiner, phase)
                and index.is_available(examiner.id, slot.day)
                and not self.store.examiner_bookings_on(examiner.id, slot.day)
            ]
        return sorted(candidates, key=lambda item: (loads.get(item.id, 0), item.id))

    def auto_fill_slot(self, slot_id: int, *, actor: str | None = None) -> AutoFillSummary:
        with storage_guard(self.db, "exam_slot.auto_fill"):
            slot = self.store.require_slot(slot_id)
            phase = self.store.require_phase(slot.exam_phase_id)
            day = slot.day
            index = AvailabilityIndex.build(self.db, phase.id)
            loads = self.phase_loads(phase.id)
            candidate_ids = [
                examiner.id
                for examiner in self.store.list_examiners(phase.semester_id)
                if examiner.is_active
                and self.is_role_compatible(examiner, phase)
                and index.is_available(examiner.id, day)
            ]
            room_ids = [room.id for room in self.store.rooms_for_slot(slot_id, unstaffed_only=True)]

        summary = AutoFillSummary(slot_id=slot_id)
        used: set[int] = set()
        for room_id in room_ids:
            outcome = self._fill_room(room_id, candidate_ids, used, loads, index=index, actor=actor)
            if outcome == "assigned":
                summary.assigned_room_ids.append(room_id)
            elif outcome == "skipped":
                summary.skipped_room_ids.append(room_id)
            elif outcome == "failed":
                summary.failed_room_ids.append(room_id)
            else:
                summary.unstaffed_room_ids.append(room_id)

        logger.info(
            "Auto-fill slot %s: %d assigned, %d unstaffed, %d skipped",
            slot_id,
            summary.assigned,
            summary.unstaffed,
            len(summary.skipped_room_ids),
        )
        return summary

    def _fill_room(
        self,
        room_id: int,
        candidate_ids: list[int],
        used: set[int],
        loads: Counter[int],
        *,
        index: AvailabilityIndex,
        actor: str | None,
    ) -> str:
        ordered = sorted(
            (examiner_id for examiner_id in candidate_ids if examiner_id not in used),
            key=lambda examiner_id: (loads.get(examiner_id, 0), examiner_id),
        )
        for examiner_id in ordered:
            try:
                with storage_guard(self.db, "exam_room.auto_fill"):
                    ticket = self.prepare_assignment(room_id, examiner_id, replace=False, index=index)
                self.commit(ticket, action="exam_room.auto_fill", actor=actor)
            except RoomAlreadyStaffedError:
                return "skipped"
            except (ConflictError, UnavailableError) as exc:
                logger.debug("Auto-fill: examiner %s rejected for room %s: %s", examiner_id, room_id, exc.message)
                continue
            except InternalServiceError:
                return "failed"
            used.add(examiner_id)
            loads[examiner_id] += 1
            return "assigned"
        return "unstaffed"

    # Room management

    def add_room(
        self,
        sub_slot_id: int,
        *,
        room_ref: str,
        course_id: int,
        actor: str | None = None,
    ) -> ExamRoom:
        with storage_guard(self.db, "exam_room.add"):
            self.store.require_sub_slot(sub_slot_id)
            room = ExamRoom(sub_in_slot_id=sub_slot_id, room_ref=room_ref, course_id=course_id)
            self.db.add(room)
            self.db.flush()
            log_activity(
                self.db,
                actor=actor,
                action="exam_room.add",
                entity_type="exam_room",
                entity_id=room.id,
                details={"sub_in_slot_id": sub_slot_id, "room_ref": room_ref, "course_id": course_id},
            )
            self.db.commit()
            self.db.refresh(room)
        return room

    def remove_room(self, room_id: int, *, force: bool = False, actor: str | None = None) -> None:
        with storage_guard(self.db, "exam_room.remove"):
            room = self.store.require_room(room_id)
            if room.examiner_id is not None and not force:
                raise ConflictError(
                    f"Room assignment {room_id} is staffed by examiner {room.examiner_id}; use force to remove it",
                    details={"examiner_id": room.examiner_id},
                )
            log_activity(
                self.db,
                actor=actor,
                action="exam_room.remove",
                entity_type="exam_room",
                entity_id=room_id,
                details={"examiner_id": room.examiner_id, "forced": force},
            )
            self.db.delete(room)
            self.db.commit()
