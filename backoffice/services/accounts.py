from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.security import create_jwt
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.services.permissions import encode


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def get_user_by_email(db: Session, email: str, *, active_only: bool = True) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    q = db.query(User).filter(func.lower(User.email) == normalized, User.is_deleted.is_(False))
    if active_only:
        q = q.filter(User.is_active.is_(True))
    return q.first()


def active_roles(user: User) -> list[Role]:
    return [role for role in user.roles if role.is_active]


def effective_permissions(user: User) -> int:
    return encode(role.permissions for role in active_roles(user))


def issue_token_pair(user: User) -> dict:
    roles = [role.name for role in active_roles(user)]
    perms = effective_permissions(user)
    access = create_jwt(
        {"sub": str(user.id), "email": user.email, "roles": roles, "perms": perms, "typ": "access"},
        settings.JWT_SECRET,
        timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
    )
    refresh = create_jwt(
        {"sub": str(user.id), "typ": "refresh"},
        settings.JWT_SECRET,
        timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS),
    )
    return {
        "access_token": access,
        "refresh_token": refresh,
        "roles": roles,
        "permissions": perms,
        "full_name": user.full_name,
        "profile_image_url": user.profile_image_url,
    }
