from __future__ import annotations

import itertools
import logging

from sqlalchemy import Engine, inspect, select, text
from sqlalchemy.orm import Session

import examroster.models  # noqa: F401
from examroster.db.base import Base
from examroster.models.exam_type import ExamType

logger = logging.getLogger(__name__)

EXAM_TYPE_CODES = ("FE", "PE")
EXAM_BLOCKS = (10, 5)
EXAM_DES_VARIANTS = (0, 1)
EXPECTED_EXAM_TYPES = len(EXAM_TYPE_CODES) * len(EXAM_BLOCKS) * len(EXAM_DES_VARIANTS)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "semesters": {"id", "season", "year"},
    "exam_types": {"id", "type", "block", "des"},
    "exam_phases": {"id", "semester_id", "exam_type_id", "start_day", "end_day"},
    "exam_slots": {"id", "exam_phase_id", "day"},
    "sub_in_slots": {"id", "exam_slot_id", "start_time", "end_time"},
    "exam_rooms": {"id", "sub_in_slot_id", "room_ref", "course_id", "examiner_id"},
    "examiners": {"id", "semester_id", "email", "type_examiner", "status", "booking_version"},
    "examiner_log_times": {"id", "examiner_id", "semester_id", "day"},
}


def _ensure_sub_slot_window_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "sub_in_slots" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("sub_in_slots")}
        for column_name in ("start_time", "end_time"):
            if column_name not in column_names:
                connection.execute(text(f"ALTER TABLE sub_in_slots ADD COLUMN {column_name} VARCHAR(5)"))


def _ensure_examiner_booking_version_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "examiners" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("examiners")}
        if "booking_version" in column_names:
            return
        connection.execute(
            text("ALTER TABLE examiners ADD COLUMN booking_version INTEGER NOT NULL DEFAULT 0")
        )


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def seed_exam_types(db: Session) -> int:
    """Insert the static exam type reference rows that are missing. Returns how many were added."""
    existing = {
        (item.type, item.block, item.des) for item in db.execute(select(ExamType)).scalars()
    }
    added = 0
    for code, block, des in itertools.product(EXAM_TYPE_CODES, EXAM_BLOCKS, EXAM_DES_VARIANTS):
        if (code, block, des) in existing:
            continue
        db.add(ExamType(type=code, block=block, des=des))
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d exam type(s)", added)
    return added


def ensure_runtime_schema(engine: Engine | None = None) -> None:
    if engine is None:
        from examroster.db.session import engine as default_engine

        engine = default_engine
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_sub_slot_window_columns(engine)
        _ensure_examiner_booking_version_column(engine)
        _assert_required_columns(engine)
        with Session(engine) as db:
            seed_exam_types(db)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
