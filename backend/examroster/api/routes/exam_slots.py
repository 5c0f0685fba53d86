from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_db, require_role
from examroster.models.user import UserRole
from examroster.schemas.exam_room import AutoFillSummaryOut, ExamRoomCreate, ExamRoomOut
from examroster.schemas.exam_slot import SubInSlotCreate, SubInSlotOut
from examroster.schemas.examiner import ExaminerOut
from examroster.services.assignment import AssignmentEngine
from examroster.services.hierarchy import HierarchyStore

router = APIRouter()


@router.delete("/exam-slots/{slot_id}")
def delete_exam_slot(
    slot_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> dict:
    HierarchyStore(db).delete_slot(slot_id)
    return {"success": True}


@router.get("/exam-slots/{slot_id}/sub-slots", response_model=list[SubInSlotOut])
def list_sub_slots(
    slot_id: int,
    principal: Principal = Depends(require_role(UserRole.lecturer)),
    db: Session = Depends(get_db),
) -> list[SubInSlotOut]:
    store = HierarchyStore(db)
    store.require_slot(slot_id)
    return store.list_sub_slots(slot_id)


@router.post("/exam-slots/{slot_id}/sub-slots", response_model=SubInSlotOut, status_code=status.HTTP_201_CREATED)
def create_sub_slot(
    slot_id: int,
    payload: SubInSlotCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> SubInSlotOut:
    return HierarchyStore(db).create_sub_slot(
        slot_id=slot_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )


@router.delete("/sub-slots/{sub_slot_id}")
def delete_sub_slot(
    sub_slot_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> dict:
    HierarchyStore(db).delete_sub_slot(sub_slot_id)
    return {"success": True}


@router.post("/sub-slots/{sub_slot_id}/rooms", response_model=ExamRoomOut, status_code=status.HTTP_201_CREATED)
def add_room(
    sub_slot_id: int,
    payload: ExamRoomCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamRoomOut:
    return AssignmentEngine(db).add_room(
        sub_slot_id,
        room_ref=payload.room_ref,
        course_id=payload.course_id,
        actor=principal.email,
    )


@router.get("/exam-slots/{slot_id}/rooms", response_model=list[ExamRoomOut])
def list_slot_rooms(
    slot_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[ExamRoomOut]:
    store = HierarchyStore(db)
    store.require_slot(slot_id)
    return store.rooms_for_slot(slot_id)


@router.get("/exam-slots/{slot_id}/available-examiners", response_model=list[ExaminerOut])
def list_available_examiners(
    slot_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[ExaminerOut]:
    return AssignmentEngine(db).available_examiners_for_slot(slot_id)


@router.post("/exam-slots/{slot_id}/auto-fill", response_model=AutoFillSummaryOut)
def auto_fill_slot(
    slot_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> AutoFillSummaryOut:
    summary = AssignmentEngine(db).auto_fill_slot(slot_id, actor=principal.email)
    return AutoFillSummaryOut.model_validate(summary, from_attributes=True)
