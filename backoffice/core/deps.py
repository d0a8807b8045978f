from dataclasses import dataclass, field
from uuid import UUID

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.security import decode_jwt
from backoffice.db.session import get_db
from backoffice.models.user import User
from backoffice.services.permissions import Permission, has_permissions

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminContext:
    sub: str
    email: str
    roles: list[str] = field(default_factory=list)
    permissions: int = 0

    def can(self, required: Permission) -> bool:
        return has_permissions(self.permissions, required)


def get_current_admin(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> AdminContext:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    try:
        claims = decode_jwt(creds.credentials, settings.JWT_SECRET)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if claims.get("typ") != "access" or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        perms = int(claims.get("perms") or 0)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    return AdminContext(
        sub=str(claims["sub"]),
        email=str(claims.get("email") or ""),
        roles=[str(r) for r in claims.get("roles") or []],
        permissions=perms,
    )


def load_active_user(db: Session, sub: str) -> User:
    try:
        uid = UUID(str(sub or "").strip())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
    user = (
        db.query(User)
        .filter(User.id == uid, User.is_deleted.is_(False), User.is_active.is_(True))
        .first()
    )
    if user is None:
        raise HTTPException(status_code=401, detail="Account is not available")
    return user


def get_active_admin(
    admin: AdminContext = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> AdminContext:
    # Deactivated or deleted accounts lose access before their token expires.
    load_active_user(db, admin.sub)
    return admin


def require_permission(required: Permission):
    def _inner(admin: AdminContext = Depends(get_active_admin)) -> AdminContext:
        if not admin.can(required):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return admin
    return _inner
