import os

# Keep the app from touching a real database at import or startup.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("BOOTSTRAP_SCHEMA_ON_STARTUP", "false")

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, select  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from examroster.api.deps import get_db  # noqa: E402
from examroster.core.security import create_access_token  # noqa: E402
from examroster.db.base import Base  # noqa: E402
from examroster.db.bootstrap import seed_exam_types  # noqa: E402
from examroster.main import app  # noqa: E402
from examroster.models.exam_room import ExamRoom  # noqa: E402
from examroster.models.exam_type import ExamType  # noqa: E402
from examroster.models.examiner import ExaminerStatus, ExaminerType  # noqa: E402
from examroster.models.semester import Season  # noqa: E402
from examroster.services.hierarchy import HierarchyStore  # noqa: E402


class Scenario:
    """Builds exam hierarchies for service tests."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.store = HierarchyStore(db)

    def semester(self, *, season=Season.SUMMER, year=2024):
        return self.store.create_semester(season=season, year=year)

    def exam_type(self, *, code="FE", block=10, des=0):
        return self.db.execute(
            select(ExamType).where(ExamType.type == code, ExamType.block == block, ExamType.des == des)
        ).scalar_one()

    def phase(self, semester, *, start=date(2024, 5, 1), end=date(2024, 5, 3), des=0):
        return self.store.create_phase(
            semester_id=semester.id,
            exam_type_id=self.exam_type(des=des).id,
            start_day=start,
            end_day=end,
        )

    def slot(self, phase, day=date(2024, 5, 2)):
        return self.store.create_slot(phase_id=phase.id, day=day)

    def sub_slot(self, slot, start_time=None, end_time=None):
        return self.store.create_sub_slot(slot_id=slot.id, start_time=start_time, end_time=end_time)

    def room(self, sub_slot, room_ref="R101", course_id=1):
        room = ExamRoom(sub_in_slot_id=sub_slot.id, room_ref=room_ref, course_id=course_id)
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        return room

    def examiner(
        self,
        semester,
        email,
        *,
        days=(),
        type_examiner=ExaminerType.lecturer,
        status=ExaminerStatus.active,
    ):
        examiner = self.store.create_examiner(
            semester_id=semester.id,
            email=email,
            name=email.split("@")[0].title(),
            type_examiner=type_examiner,
            status=status,
        )
        for day in days:
            self.store.add_availability(examiner.id, day)
        return examiner


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    with Session(engine) as db:
        seed_exam_types(db)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def scenario(db_session):
    return Scenario(db_session)


@pytest.fixture()
def file_engine(tmp_path):
    """File-backed database so separate sessions hold separate connections."""
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'roster.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    with Session(engine) as db:
        seed_exam_types(db)
    yield engine
    engine.dispose()


@pytest.fixture()
def client(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def build(email: str, role: str) -> dict[str, str]:
        token = create_access_token(email, role=role)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture()
def make_scenario():
    return Scenario
