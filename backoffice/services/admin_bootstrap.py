from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.security import hash_password, verify_password
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.models.user_role import UserRole
from backoffice.services.accounts import get_user_by_email, normalize_email
from backoffice.services.permissions import KNOWN_MASK


def _ensure_bootstrap_role(db: Session) -> Role:
    name = str(settings.ADMIN_BOOTSTRAP_ROLE or "Administrator").strip() or "Administrator"
    role = (
        db.query(Role)
        .filter(func.lower(Role.name) == name.lower(), Role.is_deleted.is_(False))
        .first()
    )
    if role is None:
        role = Role(name=name, description="Full access", is_active=True, permissions=KNOWN_MASK)
        db.add(role)
        db.flush()
    else:
        role.is_active = True
        role.permissions = KNOWN_MASK
    return role


def ensure_bootstrap_admin_for_login(db: Session, email: str, password: str) -> User | None:
    if not settings.ADMIN_BOOTSTRAP_ENABLED:
        return None

    normalized_email = normalize_email(email)
    bootstrap_email = normalize_email(settings.ADMIN_BOOTSTRAP_EMAIL)
    if normalized_email != bootstrap_email:
        return None
    if str(password or "") != str(settings.ADMIN_BOOTSTRAP_PASSWORD or ""):
        return None

    user = get_user_by_email(db, bootstrap_email, active_only=False)
    if user is None:
        user = User(
            full_name=str(settings.ADMIN_BOOTSTRAP_NAME or "System Administrator"),
            email=bootstrap_email,
            password_hash=hash_password(str(settings.ADMIN_BOOTSTRAP_PASSWORD or "")),
            is_active=True,
        )
        db.add(user)
    else:
        user.is_active = True
        if not str(user.full_name or "").strip():
            user.full_name = str(settings.ADMIN_BOOTSTRAP_NAME or "System Administrator")
        if not verify_password(str(settings.ADMIN_BOOTSTRAP_PASSWORD or ""), str(user.password_hash or "")):
            user.password_hash = hash_password(str(settings.ADMIN_BOOTSTRAP_PASSWORD or ""))
        db.add(user)
    db.flush()

    role = _ensure_bootstrap_role(db)
    linked = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role_id == role.id).first()
    if linked is None:
        db.add(UserRole(user_id=user.id, role_id=role.id))

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return get_user_by_email(db, bootstrap_email)
    db.refresh(user)
    return user
