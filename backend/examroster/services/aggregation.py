"""Phase dashboards computed by walking the current hierarchy on every call.

Nothing here is cached or stored; each figure is a fresh count over the
phase's slots, sub-slots and room assignments.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from examroster.core.config import Settings, get_settings
from examroster.core.exceptions import InvalidArgumentError, ResourceNotFoundError, storage_guard
from examroster.models.examiner import Examiner, ExaminerType
from examroster.services.availability import AvailabilityIndex
from examroster.services.hierarchy import HierarchyStore

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_NO_SLOTS = "no_slots"
STATUS_NO_EXAMINERS = "no_examiners"


@dataclass(frozen=True)
class ExaminerSummary:
    examiner_id: int
    name: str
    email: str
    role: str
    status: int


@dataclass
class DistinctExaminerReport:
    phase_id: int
    status: str
    message: str | None = None
    examiners: list[ExaminerSummary] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.examiners)

    @property
    def by_role(self) -> dict[str, int]:
        counts = {role.label: 0 for role in ExaminerType}
        for examiner in self.examiners:
            counts[examiner.role] = counts.get(examiner.role, 0) + 1
        return counts


@dataclass(frozen=True)
class ExaminerLoad:
    examiner_id: int
    name: str
    email: str
    quantity: int


@dataclass(frozen=True)
class SlotUtilization:
    slot_id: int
    day: date
    total_rooms: int
    staffed_rooms: int

    @property
    def ratio(self) -> float:
        if self.total_rooms == 0:
            return 0.0
        return round(self.staffed_rooms / self.total_rooms, 4)


class AggregationEngine:
    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = HierarchyStore(db)

    def _examiners_by_id(self, examiner_ids: list[int]) -> dict[int, Examiner]:
        if not examiner_ids:
            return {}
        statement = select(Examiner).where(Examiner.id.in_(examiner_ids))
        return {examiner.id: examiner for examiner in self.db.execute(statement).scalars()}

    def _load_counts(self, phase_id: int) -> Counter[int]:
        self.store.require_phase(phase_id)
        return Counter(
            room.examiner_id for room in self.store.rooms_for_phase(phase_id) if room.examiner_id is not None
        )

    def load_distribution(self, phase_id: int) -> dict[int, int]:
        with storage_guard(self.db, "dashboard.load"):
            return dict(self._load_counts(phase_id))

    def count_distinct_examiners(self, phase_id: int) -> DistinctExaminerReport:
        with storage_guard(self.db, "dashboard.examiners"):
            self.store.require_phase(phase_id)
            if not self.store.list_slots(phase_id):
                return DistinctExaminerReport(
                    phase_id=phase_id,
                    status=STATUS_NO_SLOTS,
                    message="This phase doesn't have any slots",
                )

            ordered_ids = list(
                dict.fromkeys(
                    room.examiner_id
                    for room in self.store.rooms_for_phase(phase_id)
                    if room.examiner_id is not None
                )
            )
            examiners = self._examiners_by_id(ordered_ids)

        summaries: list[ExaminerSummary] = []
        for examiner_id in ordered_ids:
            examiner = examiners.get(examiner_id)
            if examiner is None:
                logger.warning("Room assignment in phase %s references missing examiner %s", phase_id, examiner_id)
                continue
            summaries.append(
                ExaminerSummary(
                    examiner_id=examiner.id,
                    name=examiner.name,
                    email=examiner.email,
                    role=examiner.role.label,
                    status=examiner.status,
                )
            )

        if not summaries:
            return DistinctExaminerReport(
                phase_id=phase_id,
                status=STATUS_NO_EXAMINERS,
                message="No examiner is assigned in this phase",
            )
        return DistinctExaminerReport(phase_id=phase_id, status=STATUS_OK, examiners=summaries)

    def count_staffed_rooms(self, phase_id: int) -> int:
        with storage_guard(self.db, "dashboard.staffed_rooms"):
            self.store.require_phase(phase_id)
            return sum(1 for room in self.store.rooms_for_phase(phase_id) if room.examiner_id is not None)

    def count_rooms(self, phase_id: int) -> int:
        with storage_guard(self.db, "dashboard.rooms"):
            self.store.require_phase(phase_id)
            return len(self.store.rooms_for_phase(phase_id))

    def count_available_examiners(self, phase_id: int) -> int:
        with storage_guard(self.db, "dashboard.available_examiners"):
            return len(AvailabilityIndex.build(self.db, phase_id))

    def top_examiners_by_load(self, phase_id: int, top_n: int | None = None) -> list[ExaminerLoad]:
        """Examiners whose load equals one of the `top_n` highest distinct loads.

        Ties are all included, so the result may hold more than `top_n` rows.
        """
        if top_n is None:
            top_n = self.settings.top_examiners_default_tiers
        if top_n < 1:
            raise InvalidArgumentError("top_n must be at least 1", details={"top_n": top_n})

        with storage_guard(self.db, "dashboard.top_examiners"):
            counts = self._load_counts(phase_id)
            if not counts:
                raise ResourceNotFoundError(
                    "ExamPhase",
                    phase_id,
                    message=f"No examiner holds an assignment in phase {phase_id}",
                )

            top_values = sorted(set(counts.values()), reverse=True)[:top_n]
            ranked = sorted(
                ((examiner_id, quantity) for examiner_id, quantity in counts.items() if quantity in top_values),
                key=lambda item: (-item[1], item[0]),
            )
            examiners = self._examiners_by_id([examiner_id for examiner_id, _ in ranked])
        return [
            ExaminerLoad(
                examiner_id=examiner_id,
                name=examiners[examiner_id].name,
                email=examiners[examiner_id].email,
                quantity=quantity,
            )
            for examiner_id, quantity in ranked
            if examiner_id in examiners
        ]

    def slot_utilization(self, phase_id: int) -> list[SlotUtilization]:
        with storage_guard(self.db, "dashboard.utilization"):
            self.store.require_phase(phase_id)
            return [
                SlotUtilization(
                    slot_id=slot.id,
                    day=slot.day,
                    total_rooms=len(rooms),
                    staffed_rooms=sum(1 for room in rooms if room.examiner_id is not None),
                )
                for slot, rooms in self.store.rooms_by_slot_for_phase(phase_id)
            ]
