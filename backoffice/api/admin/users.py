from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from backoffice.core.deps import AdminContext, require_permission
from backoffice.core.security import hash_password, password_policy_violations
from backoffice.db.session import get_db
from backoffice.models.geo import City, Country, State
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.models.user_role import UserRole
from backoffice.schemas.admin import UserCreate, UserListItem, UserUpdate
from backoffice.schemas.listing import CountOut, ListQuery, PagedData, ResponseData
from backoffice.services.accounts import normalize_email
from backoffice.services.list_query import run_listing
from backoffice.services.listings import USER_LISTING
from backoffice.services.permissions import Permission
from backoffice.services.profile_images import (
    ProfileImage,
    ProfileImageError,
    ProfileImageStorageError,
    read_profile_image,
    store_profile_image,
)

from .common import bad_request, conflict, load_live_or_404, ok, soft_delete

router = APIRouter()

_USER_LOADERS = (
    joinedload(User.country),
    joinedload(User.state),
    joinedload(User.city),
    selectinload(User.roles),
)


def user_list_item(u: User) -> UserListItem:
    return UserListItem(
        id=str(u.id),
        full_name=u.full_name,
        email=u.email,
        phone_number=u.phone_number,
        date_of_birth=u.date_of_birth,
        country_id=u.country_id,
        country_name=u.country.name if u.country else None,
        state_id=u.state_id,
        state_name=u.state.name if u.state else None,
        city_id=u.city_id,
        city_name=u.city.name if u.city else None,
        profile_image_url=u.profile_image_url,
        is_active=bool(u.is_active),
        created_at=u.created_at,
        roles=[r.name for r in u.roles],
    )


def _live_users(db: Session):
    return db.query(User).filter(User.is_deleted.is_(False))


def _ensure_email_free(db: Session, email: str, *, exclude_id: UUID | None = None) -> None:
    q = _live_users(db).filter(func.lower(User.email) == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first() is not None:
        raise conflict("A user with this email already exists")


def _ensure_password_policy(password: str) -> None:
    violations = password_policy_violations(password)
    if violations:
        raise bad_request("Password must contain " + ", ".join(violations))


def _geo_ids_or_400(db: Session, country_id: int | None, state_id: int | None, city_id: int | None):
    # The client sends 0 for "not selected".
    country_id = country_id or None
    state_id = state_id or None
    city_id = city_id or None
    if country_id is not None and db.get(Country, country_id) is None:
        raise bad_request("Unknown country")
    if state_id is not None:
        state = db.get(State, state_id)
        if state is None or (country_id is not None and state.country_id != country_id):
            raise bad_request("Unknown state for the selected country")
    if city_id is not None:
        city = db.get(City, city_id)
        if city is None or (state_id is not None and city.state_id != state_id):
            raise bad_request("Unknown city for the selected state")
    return country_id, state_id, city_id


def _set_roles_or_400(db: Session, user: User, role_ids: list[UUID]) -> None:
    wanted = set(role_ids)
    if wanted:
        found = {
            r.id
            for r in db.query(Role).filter(Role.id.in_(wanted), Role.is_deleted.is_(False)).all()
        }
        missing = wanted - found
        if missing:
            raise bad_request("Unknown role id(s): " + ", ".join(sorted(str(m) for m in missing)))
    db.query(UserRole).filter(UserRole.user_id == user.id).delete(synchronize_session=False)
    for role_id in wanted:
        db.add(UserRole(user_id=user.id, role_id=role_id))


def _load_user(db: Session, user_id: UUID) -> User:
    return load_live_or_404(db, User, user_id, "User not found")


def user_form(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None, alias="email"),
    phone_number: Optional[str] = Form(None, alias="phoneNumber"),
    password: Optional[str] = Form(None, alias="password"),
    date_of_birth: Optional[date] = Form(None, alias="dateOfBirth"),
    country_id: Optional[int] = Form(None, alias="countryId"),
    state_id: Optional[int] = Form(None, alias="stateId"),
    city_id: Optional[int] = Form(None, alias="cityId"),
    is_active: Optional[bool] = Form(None, alias="isActive"),
    role_ids: Optional[List[UUID]] = Form(None, alias="roleIds"),
) -> dict:
    """Multipart user fields. Omitted or empty fields are left out."""
    fields = {
        "full_name": full_name,
        "email": email,
        "phone_number": phone_number,
        "password": password,
        "date_of_birth": date_of_birth,
        "country_id": country_id,
        "state_id": state_id,
        "city_id": city_id,
        "is_active": is_active,
        "role_ids": role_ids,
    }
    return {k: v for k, v in fields.items() if v is not None}


def _validate_form(model, fields: dict):
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False))


def _profile_image_or_400(upload: Optional[UploadFile]) -> Optional[ProfileImage]:
    try:
        return read_profile_image(upload)
    except ProfileImageError as exc:
        raise bad_request(str(exc))


def _store_profile_image_or_502(user: User, image: ProfileImage) -> None:
    try:
        user.profile_image_url = store_profile_image(user.id, image)
    except ProfileImageStorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.post("/query", response_model=ResponseData[PagedData[UserListItem]])
def query_users(lq: ListQuery, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_USER))):
    return run_listing(db, _live_users(db), USER_LISTING, lq, user_list_item, options=_USER_LOADERS)


@router.get("/count", response_model=ResponseData[CountOut])
def count_users(db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_USER))):
    return ok("Users counted", CountOut(total=_live_users(db).count()))


@router.get("/{user_id}", response_model=ResponseData[UserListItem])
def get_user(user_id: UUID, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_USER))):
    return ok("User fetched successfully", user_list_item(_load_user(db, user_id)))


@router.post("", status_code=201, response_model=ResponseData[UserListItem])
def create_user(
    form: dict = Depends(user_form),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    db: Session = Depends(get_db),
    admin=Depends(require_permission(Permission.ADD_USER)),
):
    payload = _validate_form(UserCreate, form)
    email = normalize_email(payload.email)
    _ensure_password_policy(payload.password)
    _ensure_email_free(db, email)
    country_id, state_id, city_id = _geo_ids_or_400(db, payload.country_id, payload.state_id, payload.city_id)
    image = _profile_image_or_400(profile_image)

    user = User(
        full_name=payload.full_name,
        email=email,
        phone_number=payload.phone_number,
        password_hash=hash_password(payload.password),
        date_of_birth=payload.date_of_birth,
        country_id=country_id,
        state_id=state_id,
        city_id=city_id,
        is_active=payload.is_active,
    )
    db.add(user)
    db.flush()
    _set_roles_or_400(db, user, payload.role_ids)
    if image is not None:
        _store_profile_image_or_502(user, image)
    db.commit()
    db.refresh(user)
    return ok("User created successfully", user_list_item(user))


@router.put("/{user_id}", response_model=ResponseData[UserListItem])
def update_user(
    user_id: UUID,
    form: dict = Depends(user_form),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    remove_profile_image: bool = Form(False, alias="removeProfileImage"),
    db: Session = Depends(get_db),
    admin=Depends(require_permission(Permission.EDIT_USER)),
):
    user = _load_user(db, user_id)
    changes = _validate_form(UserUpdate, form).model_dump(exclude_unset=True)
    image = _profile_image_or_400(profile_image)

    if "full_name" in changes:
        name = str(changes["full_name"] or "").strip()
        if not name:
            raise bad_request("Full name must not be blank")
        user.full_name = name
    if "email" in changes:
        email = normalize_email(changes["email"])
        if not email:
            raise bad_request("Email must not be blank")
        _ensure_email_free(db, email, exclude_id=user.id)
        user.email = email
    if "phone_number" in changes:
        user.phone_number = str(changes["phone_number"] or "").strip() or None
    if "date_of_birth" in changes:
        user.date_of_birth = changes["date_of_birth"]
    if "is_active" in changes and changes["is_active"] is not None:
        user.is_active = bool(changes["is_active"])
    if changes.get("password"):
        _ensure_password_policy(changes["password"])
        user.password_hash = hash_password(changes["password"])
    if {"country_id", "state_id", "city_id"} & changes.keys():
        user.country_id, user.state_id, user.city_id = _geo_ids_or_400(
            db,
            changes.get("country_id", user.country_id),
            changes.get("state_id", user.state_id),
            changes.get("city_id", user.city_id),
        )
    if changes.get("role_ids") is not None:
        _set_roles_or_400(db, user, changes["role_ids"])
    if image is not None:
        _store_profile_image_or_502(user, image)
    elif remove_profile_image:
        user.profile_image_url = None

    db.add(user)
    db.commit()
    db.refresh(user)
    return ok("User updated successfully", user_list_item(user))


@router.delete("/{user_id}", response_model=ResponseData)
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    admin: AdminContext = Depends(require_permission(Permission.DELETE_USER)),
):
    user = _load_user(db, user_id)
    if str(user.id) == admin.sub:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    soft_delete(db, user)
    db.commit()
    return ok("User deleted successfully")
