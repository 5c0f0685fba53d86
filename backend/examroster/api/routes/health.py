from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import Connection, func, inspect, select

from examroster.core.config import get_settings
from examroster.db.bootstrap import EXPECTED_EXAM_TYPES, REQUIRED_COLUMNS
from examroster.db.session import engine
from examroster.models.exam_type import ExamType

router = APIRouter()

settings = get_settings()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name in missing_tables:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        if required - existing:
            missing_columns[table_name] = sorted(required - existing)
    return missing_tables, missing_columns


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "service": settings.project_name}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    db_error: str | None = None
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    exam_types = 0

    try:
        with engine.connect() as connection:
            missing_tables, missing_columns = _schema_gaps(connection)
            if "exam_types" not in missing_tables:
                exam_types = connection.execute(select(func.count(ExamType.id))).scalar_one()
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = exc.__class__.__name__

    schema_ok = not missing_tables and not missing_columns
    reference_ok = exam_types >= EXPECTED_EXAM_TYPES
    ready = db_ok and schema_ok and reference_ok
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": {
            "ok": db_ok,
            "backend": engine.url.get_backend_name(),
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "reference_data": {"ok": reference_ok, "exam_types": exam_types},
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
