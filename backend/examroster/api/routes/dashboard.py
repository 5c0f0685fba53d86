from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_db, require_role
from examroster.models.user import UserRole
from examroster.schemas.dashboard import (
    DistinctExaminersOut,
    ExaminerLoadOut,
    LoadEntryOut,
    PhaseCountOut,
    SlotUtilizationOut,
)
from examroster.services.aggregation import AggregationEngine

router = APIRouter()


@router.get("/dashboard/{phase_id}/examiners", response_model=DistinctExaminersOut)
def distinct_examiners(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> DistinctExaminersOut:
    report = AggregationEngine(db).count_distinct_examiners(phase_id)
    return DistinctExaminersOut.model_validate(report, from_attributes=True)


@router.get("/dashboard/{phase_id}/available-examiners", response_model=PhaseCountOut)
def available_examiners(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> PhaseCountOut:
    return PhaseCountOut(phase_id=phase_id, count=AggregationEngine(db).count_available_examiners(phase_id))


@router.get("/dashboard/{phase_id}/staffed-rooms", response_model=PhaseCountOut)
def staffed_rooms(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> PhaseCountOut:
    return PhaseCountOut(phase_id=phase_id, count=AggregationEngine(db).count_staffed_rooms(phase_id))


@router.get("/dashboard/{phase_id}/rooms", response_model=PhaseCountOut)
def total_rooms(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> PhaseCountOut:
    return PhaseCountOut(phase_id=phase_id, count=AggregationEngine(db).count_rooms(phase_id))


@router.get("/dashboard/{phase_id}/top-examiners", response_model=list[ExaminerLoadOut])
def top_examiners(
    phase_id: int,
    top_n: int | None = Query(default=None, ge=1, le=50),
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[ExaminerLoadOut]:
    loads = AggregationEngine(db).top_examiners_by_load(phase_id, top_n)
    return [ExaminerLoadOut.model_validate(item, from_attributes=True) for item in loads]


@router.get("/dashboard/{phase_id}/load", response_model=list[LoadEntryOut])
def load_distribution(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[LoadEntryOut]:
    distribution = AggregationEngine(db).load_distribution(phase_id)
    return [
        LoadEntryOut(examiner_id=examiner_id, quantity=quantity)
        for examiner_id, quantity in sorted(distribution.items(), key=lambda item: (-item[1], item[0]))
    ]


@router.get("/dashboard/{phase_id}/utilization", response_model=list[SlotUtilizationOut])
def slot_utilization(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[SlotUtilizationOut]:
    rows = AggregationEngine(db).slot_utilization(phase_id)
    return [SlotUtilizationOut.model_validate(item, from_attributes=True) for item in rows]
