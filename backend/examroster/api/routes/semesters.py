from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from examroster.api.deps import Principal, get_db, require_role
from examroster.models.user import UserRole
from examroster.schemas.examiner import ExaminerCreate, ExaminerOut
from examroster.schemas.semester import SemesterCreate, SemesterOut
from examroster.services.hierarchy import HierarchyStore

router = APIRouter()


@router.get("/semesters", response_model=list[SemesterOut])
def list_semesters(
    principal: Principal = Depends(require_role(UserRole.lecturer)),
    db: Session = Depends(get_db),
) -> list[SemesterOut]:
    return HierarchyStore(db).list_semesters()


@router.post("/semesters", response_model=SemesterOut, status_code=status.HTTP_201_CREATED)
def create_semester(
    payload: SemesterCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> SemesterOut:
    return HierarchyStore(db).create_semester(season=payload.season, year=payload.year)


@router.delete("/semesters/{semester_id}")
def delete_semester(
    semester_id: int,
    principal: Principal = Depends(require_role(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    HierarchyStore(db).delete_semester(semester_id)
    return {"success": True}


@router.get("/semesters/{semester_id}/examiners", response_model=list[ExaminerOut])
def list_examiners(
    semester_id: int,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> list[ExaminerOut]:
    store = HierarchyStore(db)
    store.require_semester(semester_id)
    return store.list_examiners(semester_id)


@router.post(
    "/semesters/{semester_id}/examiners",
    response_model=ExaminerOut,
    status_code=status.HTTP_201_CREATED,
)
def create_examiner(
    semester_id: int,
    payload: ExaminerCreate,
    principal: Principal = Depends(require_role(UserRole.staff)),
    db: Session = Depends(get_db),
) -> ExaminerOut:
    return HierarchyStore(db).create_examiner(
        semester_id=semester_id,
        email=payload.email,
        name=payload.name,
        type_examiner=payload.type_examiner,
        status=payload.status,
    )
