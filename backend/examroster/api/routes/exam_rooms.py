from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_current_principal, get_db, require_role
from examroster.core.exceptions import ForbiddenError
from examroster.models.examiner import Examiner
from examroster.models.user import UserRole
from examroster.schemas.exam_room import ExaminerAssignment, ExamRoomOut
from examroster.schemas.examiner import ExaminerOut
from examroster.services.assignment import AssignmentEngine
from examroster.services.hierarchy import HierarchyStore
from examroster.services.registration import RegistrationWorkflow

router = APIRouter()


def _examiner_for_principal(store: HierarchyStore, principal: Principal, room_id: int) -> Examiner:
    context = store.room_context(room_id)
    examiner = store.examiner_for_identity(context.phase.semester_id, principal.email, principal.examiner_id)
    if examiner is None:
        raise ForbiddenError("You are not registered as an examiner in this semester")
    return examiner


@router.delete("/exam-rooms/{room_id}")
def remove_room(
    room_id: int,
    force: bool = Query(default=False),
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> dict:
    AssignmentEngine(db).remove_room(room_id, force=force, actor=principal.email)
    return {"success": True}


@router.put("/exam-rooms/{room_id}/examiner", response_model=ExamRoomOut)
def assign_examiner(
    room_id: int,
    payload: ExaminerAssignment,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamRoomOut:
    return AssignmentEngine(db).assign_examiner(room_id, payload.examiner_id, actor=principal.email)


@router.delete("/exam-rooms/{room_id}/examiner", response_model=ExamRoomOut)
def release_examiner(
    room_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExamRoomOut:
    return AssignmentEngine(db).release_examiner(room_id, actor=principal.email)


@router.get("/exam-rooms/{room_id}/eligible-examiners", response_model=list[ExaminerOut])
def list_eligible_examiners(
    room_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[ExaminerOut]:
    return AssignmentEngine(db).eligible_examiners(room_id)


@router.post("/exam-rooms/{room_id}/registration", response_model=ExamRoomOut)
def register_for_room(
    room_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> ExamRoomOut:
    workflow = RegistrationWorkflow(db)
    examiner = _examiner_for_principal(workflow.store, principal, room_id)
    return workflow.register(examiner.id, room_id, actor=principal.email)


@router.delete("/exam-rooms/{room_id}/registration", response_model=ExamRoomOut)
def unregister_from_room(
    room_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> ExamRoomOut:
    workflow = RegistrationWorkflow(db)
    examiner = _examiner_for_principal(workflow.store, principal, room_id)
    return workflow.unregister(examiner.id, room_id, actor=principal.email)
