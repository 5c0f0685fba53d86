from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_current_principal, get_db
from examroster.core.exceptions import ForbiddenError, ResourceNotFoundError
from examroster.models.examiner import Examiner
from examroster.models.user import UserRole
from examroster.schemas.exam_room import ExamRoomOut
from examroster.schemas.examiner import AvailabilityDay, AvailabilityOut
from examroster.services.hierarchy import HierarchyStore
from examroster.services.registration import RegistrationWorkflow

router = APIRouter()


def _require_self_or_staff(store: HierarchyStore, principal: Principal, examiner_id: int) -> Examiner:
    examiner = store.require_examiner(examiner_id)
    if principal.has_level(UserRole.staff):
        return examiner
    if examiner.email != principal.email and examiner.id != principal.examiner_id:
        raise ForbiddenError("You can only manage your own availability")
    return examiner


@router.get("/examiners/me/assignments", response_model=list[ExamRoomOut])
def list_my_assignments(
    semester_id: int = Query(ge=1),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[ExamRoomOut]:
    workflow = RegistrationWorkflow(db)
    workflow.store.require_semester(semester_id)
    examiner = workflow.store.examiner_for_identity(semester_id, principal.email, principal.examiner_id)
    if examiner is None:
        raise ResourceNotFoundError(
            "Examiner",
            principal.email,
            message="You are not registered as an examiner in this semester",
        )
    return workflow.assignments_for(examiner.id)


@router.get("/examiners/{examiner_id}/availability", response_model=AvailabilityOut)
def list_availability(
    examiner_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    store = HierarchyStore(db)
    _require_self_or_staff(store, principal, examiner_id)
    return AvailabilityOut(examiner_id=examiner_id, days=store.list_availability(examiner_id))


@router.post("/examiners/{examiner_id}/availability", response_model=AvailabilityOut)
def add_availability(
    examiner_id: int,
    payload: AvailabilityDay,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    store = HierarchyStore(db)
    _require_self_or_staff(store, principal, examiner_id)
    store.add_availability(examiner_id, payload.day)
    return AvailabilityOut(examiner_id=examiner_id, days=store.list_availability(examiner_id))


@router.delete("/examiners/{examiner_id}/availability", response_model=AvailabilityOut)
def remove_availability(
    examiner_id: int,
    payload: AvailabilityDay,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    store = HierarchyStore(db)
    _require_self_or_staff(store, principal, examiner_id)
    store.remove_availability(examiner_id, payload.day)
    return AvailabilityOut(examiner_id=examiner_id, days=store.list_availability(examiner_id))
