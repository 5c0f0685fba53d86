"""Seed a demo exam phase with rooms, examiners and availability, then auto-fill it.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

from datetime import date, timedelta
import os

from sqlalchemy import select

from examroster.core.security import create_access_token
from examroster.db.bootstrap import ensure_runtime_schema
from examroster.db.session import SessionLocal
from examroster.models.exam_type import ExamType
from examroster.models.examiner import ExaminerType
from examroster.models.semester import Season, Semester
from examroster.services.aggregation import AggregationEngine
from examroster.services.assignment import AssignmentEngine
from examroster.services.hierarchy import HierarchyStore

EMAIL_DOMAIN = os.getenv("SEED_EMAIL_DOMAIN", "university.edu").strip().lower() or "university.edu"
PHASE_DAYS = int(os.getenv("SEED_PHASE_DAYS", "5"))
ROOMS_PER_SUB_SLOT = int(os.getenv("SEED_ROOMS_PER_SUB_SLOT", "3"))
SUB_SLOT_WINDOWS = [("08:00", "10:00"), ("13:00", "15:00")]

EXAMINERS = [
    ("Anh Nguyen", ExaminerType.lecturer),
    ("Binh Tran", ExaminerType.lecturer),
    ("Chi Le", ExaminerType.lecturer),
    ("Dung Pham", ExaminerType.staff),
    ("Giang Vo", ExaminerType.staff),
    ("Hoa Do", ExaminerType.volunteer),
]


def _email_for(name: str) -> str:
    return f"{name.lower().replace(' ', '.')}@{EMAIL_DOMAIN}"


def upsert_semester(store: HierarchyStore, today: date) -> Semester:
    season = Season.for_month(today.month)
    existing = store.db.execute(
        select(Semester).where(Semester.season == season, Semester.year == today.year)
    ).scalar_one_or_none()
    if existing is not None:
        return existing
    return store.create_semester(season=season, year=today.year)


def seed_phase(store: HierarchyStore, semester: Semester, start: date) -> int:
    final_exam = store.db.execute(
        select(ExamType).where(ExamType.type == "FE", ExamType.block == 10, ExamType.des == 0)
    ).scalar_one()
    phase = store.create_phase(
        semester_id=semester.id,
        exam_type_id=final_exam.id,
        start_day=start,
        end_day=start + timedelta(days=PHASE_DAYS - 1),
    )
    course_id = 100
    for offset in range(PHASE_DAYS):
        slot = store.create_slot(phase_id=phase.id, day=start + timedelta(days=offset))
        for start_time, end_time in SUB_SLOT_WINDOWS:
            sub_slot = store.create_sub_slot(slot_id=slot.id, start_time=start_time, end_time=end_time)
            for index in range(ROOMS_PER_SUB_SLOT):
                course_id += 1
                AssignmentEngine(store.db).add_room(
                    sub_slot.id,
                    room_ref=f"A{index + 1}0{offset + 1}",
                    course_id=course_id,
                    actor="seed",
                )
    return phase.id


def seed_examiners(store: HierarchyStore, semester: Semester, start: date) -> None:
    for position, (name, role) in enumerate(EXAMINERS):
        email = _email_for(name)
        examiner = store.examiner_by_email(semester.id, email)
        if examiner is None:
            examiner = store.create_examiner(semester_id=semester.id, email=email, name=name, type_examiner=role)
        # Stagger availability so auto-fill leaves some rooms open.
        for offset in range(position % 2, PHASE_DAYS, 1 + position % 2):
            store.add_availability(examiner.id, start + timedelta(days=offset))


def main() -> None:
    ensure_runtime_schema()
    today = date.today()
    start = today + timedelta(days=7)
    with SessionLocal() as session:
        store = HierarchyStore(session)
        semester = upsert_semester(store, today)
        phase_id = seed_phase(store, semester, start)
        seed_examiners(store, semester, start)

        engine = AssignmentEngine(session)
        assigned = 0
        unstaffed = 0
        for slot in store.list_slots(phase_id):
            summary = engine.auto_fill_slot(slot.id, actor="seed")
            assigned += summary.assigned
            unstaffed += summary.unstaffed

        aggregation = AggregationEngine(session)
        total_rooms = aggregation.count_rooms(phase_id)
        staffed_rooms = aggregation.count_staffed_rooms(phase_id)
        top = aggregation.top_examiners_by_load(phase_id) if staffed_rooms else []
        semester_label = f"{semester.season.value} {semester.year} (id {semester.id})"

    print("Exam roster demo data seeded successfully.")
    print("")
    print(f"Semester: {semester_label}")
    print(f"Phase id: {phase_id}")
    print(f"Rooms: {total_rooms} total, {staffed_rooms} staffed")
    print(f"Auto-fill: {assigned} assigned, {unstaffed} left open")
    print(f"Busiest examiners: {[(item.email, item.quantity) for item in top]}")
    print("")
    print("Bearer tokens for the API:")
    print(f"  Staff:    {create_access_token(f'office@{EMAIL_DOMAIN}', role='staff')}")
    print(f"  Examiner: {create_access_token(_email_for(EXAMINERS[0][0]), role='lecturer')}")


if __name__ == "__main__":
    main()
