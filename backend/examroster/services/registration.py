from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from examroster.core.config import Settings
from examroster.core.exceptions import ConflictError, ForbiddenError, UnavailableError, storage_guard
from examroster.models.exam_room import ExamRoom
from examroster.services.assignment import AssignmentEngine, BookingTicket, RoomAlreadyStaffedError
from examroster.services.availability import AvailabilityIndex
from examroster.services.hierarchy import HierarchyStore

logger = logging.getLogger(__name__)


class RegistrationWorkflow:
    """Examiner self-service: take an open room assignment or give one back.

    Uses the same eligibility rules and compare-and-set commit as the
    assignment engine, but never replaces another examiner.
    """

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.engine = AssignmentEngine(db, settings)
        self.store: HierarchyStore = self.engine.store

    def register(self, examiner_id: int, room_id: int, *, actor: str | None = None) -> ExamRoom:
        with storage_guard(self.db, "exam_room.register"):
            context = self.store.room_context(room_id)
            if context.room.examiner_id == examiner_id:
                return context.room
            if context.room.examiner_id is not None:
                raise RoomAlreadyStaffedError(
                    f"Room assignment {room_id} is already staffed by another examiner",
                    details={"room_id": room_id},
                )

            examiner = self.store.require_examiner(examiner_id)
            self.engine.check_eligibility(context, examiner)
            ticket = BookingTicket(
                room_id=room_id,
                examiner_id=examiner_id,
                expected_examiner_id=None,
                expected_booking_version=examiner.booking_version,
            )
        try:
            return self.engine.commit(ticket, action="exam_room.register", actor=actor)
        except ConflictError:
            # Lost the race; a concurrent call by the same examiner still counts as registered.
            with storage_guard(self.db, "exam_room.register"):
                room = self.store.require_room(room_id)
            if room.examiner_id == examiner_id:
                return room
            raise

    def unregister(self, examiner_id: int, room_id: int, *, actor: str | None = None) -> ExamRoom:
        with storage_guard(self.db, "exam_room.unregister"):
            room = self.store.require_room(room_id)
        if room.examiner_id is None:
            return room
        if room.examiner_id != examiner_id:
            raise ForbiddenError(
                f"Room assignment {room_id} is held by another examiner",
                details={"room_id": room_id},
            )
        ticket = BookingTicket(room_id=room_id, examiner_id=None, expected_examiner_id=examiner_id)
        try:
            return self.engine.commit(ticket, action="exam_room.unregister", actor=actor)
        except RoomAlreadyStaffedError:
            with storage_guard(self.db, "exam_room.unregister"):
                room = self.store.require_room(room_id)
            if room.examiner_id is None:
                return room
            raise

    def open_rooms_for(self, examiner_id: int, phase_id: int) -> list[ExamRoom]:
        """Unstaffed rooms in the phase the examiner could register for right now."""
        with storage_guard(self.db, "exam_phase.open_rooms"):
            examiner = self.store.require_examiner(examiner_id)
            self.store.require_phase(phase_id)
            index = AvailabilityIndex.build(self.db, phase_id)
            if not index.days_for(examiner_id):
                return []

            open_rooms: list[ExamRoom] = []
            for room in self.store.rooms_for_phase(phase_id):
                if room.examiner_id is not None:
                    continue
                context = self.store.room_context(room.id)
                try:
                    self.engine.check_eligibility(context, examiner, index=index)
                except (ConflictError, UnavailableError):
                    continue
                open_rooms.append(room)
        return open_rooms

    def assignments_for(self, examiner_id: int) -> list[ExamRoom]:
        with storage_guard(self.db, "examiner.assignments"):
            self.store.require_examiner(examiner_id)
            return self.store.rooms_held_by(examiner_id)
