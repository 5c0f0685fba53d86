from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_current_principal, get_db, require_role
from examroster.core.exceptions import ForbiddenError
from examroster.models.user import UserRole
from examroster.schemas.exam_phase import (
    ExamPhaseCreate,
    ExamPhaseDetailOut,
    ExamPhaseOut,
    ExamPhaseUpdate,
    ExamTypeOut,
)
from examroster.schemas.exam_room import ExamRoomOut
from examroster.schemas.exam_slot import ExamSlotCreate, ExamSlotOut
from examroster.services.hierarchy import HierarchyStore
from examroster.services.registration import RegistrationWorkflow

router = APIRouter()


@router.get("/exam-types", response_model=list[ExamTypeOut])
def list_exam_types(
    principal: Principal = Depends(require_role(UserRole.lecturer)),
    db: Session = Depends(get_db),
) -> list[ExamTypeOut]:
    return HierarchyStore(db).list_exam_types()


@router.get("/exam-phases", response_model=list[ExamPhaseDetailOut])
def list_exam_phases(
    semester_id: int | None = Query(default=None, ge=1),
    principal: Principal = Depends(require_role(UserRole.lecturer)),
    db: Session = Depends(get_db),
) -> list[ExamPhaseDetailOut]:
    phases = HierarchyStore(db).list_phases(semester_id)
    return [ExamPhaseDetailOut.model_validate(item, from_attributes=True) for item in phases]


@router.post("/exam-phases", response_model=ExamPhaseOut, status_code=status.HTTP_201_CREATED)
def create_exam_phase(
    payload: ExamPhaseCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamPhaseOut:
    return HierarchyStore(db).create_phase(**payload.model_dump())


@router.put("/exam-phases/{phase_id}", response_model=ExamPhaseOut)
def update_exam_phase(
    phase_id: int,
    payload: ExamPhaseUpdate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamPhaseOut:
    return HierarchyStore(db).update_phase(phase_id, **payload.model_dump(exclude_unset=True))


@router.delete("/exam-phases/{phase_id}")
def delete_exam_phase(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> dict:
    HierarchyStore(db).delete_phase(phase_id)
    return {"success": True}


@router.get("/exam-phases/{phase_id}/slots", response_model=list[ExamSlotOut])
def list_exam_slots(
    phase_id: int,
    principal: Principal = Depends(require_role(UserRole.lecturer)),
    db: Session = Depends(get_db),
) -> list[ExamSlotOut]:
    store = HierarchyStore(db)
    store.require_phase(phase_id)
    return store.list_slots(phase_id)


@router.post("/exam-phases/{phase_id}/slots", response_model=ExamSlotOut, status_code=status.HTTP_201_CREATED)
def create_exam_slot(
    phase_id: int,
    payload: ExamSlotCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamSlotOut:
    return HierarchyStore(db).create_slot(phase_id=phase_id, day=payload.day)


@router.get("/exam-phases/{phase_id}/open-rooms", response_model=list[ExamRoomOut])
def list_open_rooms(
    phase_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[ExamRoomOut]:
    store = HierarchyStore(db)
    phase = store.require_phase(phase_id)
    examiner = store.examiner_for_identity(phase.semester_id, principal.email, principal.examiner_id)
    if examiner is None:
        raise ForbiddenError("You are not registered as an examiner in this semester")
    return RegistrationWorkflow(db).open_rooms_for(examiner.id, phase_id)
