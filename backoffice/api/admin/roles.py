from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.deps import require_permission
from backoffice.db.session import get_db
from backoffice.models.role import Role
from backoffice.models.user_role import UserRole
from backoffice.schemas.admin import RoleCreate, RoleOut, RolePatch
from backoffice.schemas.listing import CountOut, ListQuery, PagedData, ResponseData
from backoffice.services.list_query import run_listing
from backoffice.services.listings import ROLE_LISTING
from backoffice.services.permissions import Permission, normalize_permission_payload, permission_catalog, permission_names

from .common import bad_request, conflict, load_live_or_404, ok, soft_delete

router = APIRouter()


def role_out(r: Role) -> RoleOut:
    return RoleOut(
        id=str(r.id),
        name=r.name,
        description=r.description,
        is_active=bool(r.is_active),
        permissions=int(r.permissions or 0),
        permission_names=permission_names(r.permissions),
        created_at=r.created_at,
    )


def _live_roles(db: Session):
    return db.query(Role).filter(Role.is_deleted.is_(False))


def _ensure_name_free(db: Session, name: str, *, exclude_id: UUID | None = None) -> None:
    q = _live_roles(db).filter(func.lower(Role.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Role.id != exclude_id)
    if q.first() is not None:
        raise conflict("A role with this name already exists")


@router.post("/query", response_model=ResponseData[PagedData[RoleOut]])
def query_roles(lq: ListQuery, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_ROLE))):
    return run_listing(db, _live_roles(db), ROLE_LISTING, lq, role_out)


@router.get("/count", response_model=ResponseData[CountOut])
def count_roles(db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_ROLE))):
    return ok("Roles counted", CountOut(total=_live_roles(db).count()))


@router.get("/permissions", response_model=ResponseData)
def list_permission_groups(admin=Depends(require_permission(Permission.VIEW_ROLE))):
    return ok("Permissions fetched successfully", permission_catalog())


@router.get("/{role_id}", response_model=ResponseData[RoleOut])
def get_role(role_id: UUID, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_ROLE))):
    return ok("Role fetched successfully", role_out(load_live_or_404(db, Role, role_id, "Role not found")))


@router.post("", status_code=201, response_model=ResponseData[RoleOut])
def create_role(payload: RoleCreate, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.ADD_ROLE))):
    _ensure_name_free(db, payload.name)
    role = Role(
        name=payload.name,
        description=payload.description,
        is_active=payload.is_active,
        permissions=normalize_permission_payload(payload.permissions),
    )
    db.add(role)
    db.commit()
    db.refresh(role)
    return ok("Role created successfully", role_out(role))


@router.put("/{role_id}", response_model=ResponseData[RoleOut])
def update_role(
    role_id: UUID,
    payload: RolePatch,
    db: Session = Depends(get_db),
    admin=Depends(require_permission(Permission.EDIT_ROLE)),
):
    role = load_live_or_404(db, Role, role_id, "Role not found")
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        name = str(changes["name"] or "").strip()
        if not name:
            raise bad_request("Role name must not be blank")
        _ensure_name_free(db, name, exclude_id=role.id)
        role.name = name
    if "description" in changes:
        role.description = str(changes["description"] or "").strip() or None
    if changes.get("is_active") is not None:
        role.is_active = bool(changes["is_active"])
    if changes.get("permissions") is not None:
        role.permissions = normalize_permission_payload(changes["permissions"])
    db.add(role)
    db.commit()
    db.refresh(role)
    return ok("Role updated successfully", role_out(role))


@router.delete("/{role_id}", response_model=ResponseData)
def delete_role(role_id: UUID, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.DELETE_ROLE))):
    role = load_live_or_404(db, Role, role_id, "Role not found")
    db.query(UserRole).filter(UserRole.role_id == role.id).delete(synchronize_session=False)
    soft_delete(db, role)
    db.commit()
    return ok("Role deleted successfully")
