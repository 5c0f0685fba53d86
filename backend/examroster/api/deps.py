from collections.abc import Callable, Generator
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from examroster.core.security import decode_token
from examroster.db.session import SessionLocal
from examroster.models.user import UserRole

security = HTTPBearer()


@dataclass(frozen=True)
class Principal:
    """Caller identity resolved from a bearer token: `Authorize(token) -> {role, examiner_id?}`."""

    email: str
    role: UserRole
    examiner_id: int | None = None

    def has_level(self, role: UserRole) -> bool:
        return self.role.level >= role.level


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_principal(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise credentials_exception from exc

    subject = payload.get("sub")
    raw_role = payload.get("role")
    if not subject or raw_role is None:
        raise credentials_exception
    try:
        role = UserRole(raw_role)
    except ValueError as exc:
        raise credentials_exception from exc

    examiner_id = payload.get("examiner_id")
    return Principal(
        email=str(subject).strip().lower(),
        role=role,
        examiner_id=int(examiner_id) if examiner_id is not None else None,
    )


def require_role(minimum: UserRole) -> Callable[[Principal], Principal]:
    def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_level(minimum):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return principal

    return role_checker
