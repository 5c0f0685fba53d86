from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from examroster.core.config import get_settings


def engine_options(database_url: str, timeout_seconds: float) -> dict:
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return {"connect_args": {"check_same_thread": False, "timeout": timeout_seconds}}
    if backend == "postgresql":
        timeout_ms = int(timeout_seconds * 1000)
        return {
            "pool_pre_ping": True,
            "pool_timeout": timeout_seconds,
            "connect_args": {"options": f"-c statement_timeout={timeout_ms}"},
        }
    return {"pool_pre_ping": True, "pool_timeout": timeout_seconds}


settings = get_settings()

engine = create_engine(settings.database_url, **engine_options(settings.database_url, settings.db_timeout_seconds))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
