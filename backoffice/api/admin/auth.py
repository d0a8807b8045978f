from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.deps import AdminContext, get_current_admin, load_active_user
from backoffice.core.security import decode_jwt, password_policy_violations, verify_password
from backoffice.db.session import get_db
from backoffice.schemas.admin import ForgotPasswordIn, LoginIn, MeOut, RefreshIn, ResetPasswordIn, TokenPair
from backoffice.schemas.listing import ResponseData
from backoffice.services.accounts import get_user_by_email, issue_token_pair, normalize_email
from backoffice.services.admin_bootstrap import ensure_bootstrap_admin_for_login
from backoffice.services.password_reset import PasswordResetError, request_password_reset, reset_password
from backoffice.services.permissions import permission_names
from backoffice.services.rate_limit import hit_forgot_password

from .common import bad_request, ok

router = APIRouter()


@router.post("/login", response_model=TokenPair)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    user = ensure_bootstrap_admin_for_login(db, email, payload.password)
    if user is None:
        user = get_user_by_email(db, email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return TokenPair(**issue_token_pair(user))


@router.post("/refresh", response_model=TokenPair)
def refresh(payload: RefreshIn, db: Session = Depends(get_db)):
    try:
        claims = decode_jwt(payload.refresh_token, settings.JWT_SECRET)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if claims.get("typ") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = load_active_user(db, str(claims.get("sub") or ""))
    return TokenPair(**issue_token_pair(user))


@router.get("/me", response_model=MeOut)
def me(admin: AdminContext = Depends(get_current_admin), db: Session = Depends(get_db)):
    user = load_active_user(db, admin.sub)
    return MeOut(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        roles=admin.roles,
        permissions=admin.permissions,
        permission_names=permission_names(admin.permissions),
    )


@router.post("/forgot-password", response_model=ResponseData)
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    if not email:
        raise bad_request("Email is required")
    verdict = hit_forgot_password(email)
    if not verdict.allowed:
        raise HTTPException(
            status_code=429,
            detail="Too many password reset requests, try again later",
            headers={"Retry-After": str(verdict.retry_after_seconds)},
        )
    request_password_reset(db, email=email, client_reset_url=payload.client_reset_url)
    # Same answer whether or not the account exists.
    return ok("If the account exists, a password reset link has been sent")


@router.post("/reset-password", response_model=ResponseData)
def reset_password_endpoint(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    violations = password_policy_violations(payload.password)
    if violations:
        raise bad_request("Password must contain " + ", ".join(violations))
    try:
        reset_password(db, email=payload.email, token=payload.token, new_password=payload.password)
    except PasswordResetError as exc:
        raise bad_request(str(exc)) from exc
    return ok("Password has been reset")
