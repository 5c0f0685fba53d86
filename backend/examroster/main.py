from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from examroster.api.routes import (
    dashboard,
    exam_phases,
    exam_rooms,
    exam_slots,
    examiners,
    health,
    semesters,
)
from examroster.core.config import get_settings
from examroster.core.exceptions import AppError
from examroster.core.logging_config import configure_logging
from examroster.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from examroster.db.bootstrap import ensure_runtime_schema

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings)
    if settings.bootstrap_schema_on_startup:
        ensure_runtime_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(SecurityHeadersMiddleware, settings=settings)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(semesters.router, prefix=settings.api_prefix, tags=["semesters"])
app.include_router(exam_phases.router, prefix=settings.api_prefix, tags=["exam-phases"])
app.include_router(exam_slots.router, prefix=settings.api_prefix, tags=["exam-slots"])
app.include_router(exam_rooms.router, prefix=settings.api_prefix, tags=["exam-rooms"])
app.include_router(examiners.router, prefix=settings.api_prefix, tags=["examiners"])
app.include_router(dashboard.router, prefix=settings.api_prefix, tags=["dashboard"])
