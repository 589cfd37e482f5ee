from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any
import jwt
from fastapi import Request, HTTPException, Depends, status
from sqlalchemy.orm import Session
from command_center.db import get_db
from command_center.models import User, Role
from command_center.config import settings

ALGORITHM = "HS256"

# Supabase puts the Postgres role in the top-level `role` claim
DATABASE_ROLES = {"authenticated", "anon", "service_role"}

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Mint a token the way the identity provider does. Used by tests and scripts/dev."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(dt_timezone.utc) + expires_delta
    else:
        expire = datetime.now(dt_timezone.utc) + timedelta(hours=1)
    to_encode.setdefault("aud", settings.jwt_audience)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)

def role_from_claims(payload: dict[str, Any]) -> str:
    candidates = [
        (payload.get("app_metadata") or {}).get("role"),
        (payload.get("user_metadata") or {}).get("role"),
        payload.get("role"),
    ]
    for candidate in candidates:
        if not isinstance(candidate, str) or candidate in DATABASE_ROLES:
            continue
        value = candidate.upper()
        if value in Role.__members__:
            return value
    return Role.VIEWER.value

def _token_from_request(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split("Bearer ", 1)[1].strip()
    return request.cookies.get("access_token")

def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User | None:
    token = _token_from_request(request)
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
        )
    except jwt.PyJWTError:
        return None

    subject = payload.get("sub")
    if not subject:
        return None

    role = role_from_claims(payload)
    email = payload.get("email")

    user = db.query(User).filter(User.auth_subject == str(subject)).first()
    if not user:
        name = (payload.get("user_metadata") or {}).get("name")
        user = User(auth_subject=str(subject), email=email, name=name, role=role, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
    elif user.role != role or (email and user.email != email):
        # Claims are the source of truth for role and email
        user.role = role
        if email:
            user.email = email
        db.commit()

    if not user.is_active:
        return None
    return user

def require_user(user: User | None = Depends(get_current_user)) -> User:
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid or missing JWT token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
