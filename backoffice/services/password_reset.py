"""Forgot/reset password flow.

A reset request stores only the sha256 of a random token and mails the raw
token inside a link to the client's reset page. Tokens expire and can be
used once; issuing a new one revokes the older unused ones.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode, urlsplit, urlunsplit

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.security import generate_reset_token, hash_password, hash_reset_token
from backoffice.models.common import utcnow
from backoffice.models.password_reset_token import PasswordResetToken
from backoffice.services.accounts import get_user_by_email, normalize_email
from backoffice.services.email_service import EmailDeliveryError, build_reset_body, send_email_message

logger = logging.getLogger(__name__)


class PasswordResetError(Exception):
    pass


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_reset_link(client_reset_url: str, *, token: str, email: str) -> str:
    parts = urlsplit(client_reset_url)
    query = urlencode({"token": token, "email": email})
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def request_password_reset(db: Session, *, email: str, client_reset_url: str) -> bool:
    """Mail a reset link if an active account exists. Returns whether one was sent."""
    user = get_user_by_email(db, email)
    if user is None:
        logger.info("password reset requested for unknown email")
        return False

    now = utcnow()
    (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.user_id == user.id, PasswordResetToken.used_at.is_(None))
        .update({PasswordResetToken.used_at: now}, synchronize_session=False)
    )
    token = generate_reset_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(token),
            expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
        )
    )
    db.commit()

    link = build_reset_link(client_reset_url, token=token, email=normalize_email(user.email))
    try:
        send_email_message(
            email=user.email,
            subject=settings.RESET_EMAIL_SUBJECT,
            body=build_reset_body(name=user.full_name, link=link),
        )
    except EmailDeliveryError:
        logger.exception("password reset email delivery failed user_id=%s", user.id)
        return False
    return True


def reset_password(db: Session, *, email: str, token: str, new_password: str) -> None:
    user = get_user_by_email(db, email)
    if user is None:
        raise PasswordResetError("Invalid or expired reset token")
    row = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.token_hash == hash_reset_token(token),
        )
        .first()
    )
    if row is None or row.used_at is not None or _as_aware(row.expires_at) <= utcnow():
        raise PasswordResetError("Invalid or expired reset token")

    row.used_at = utcnow()
    user.password_hash = hash_password(new_password)
    db.add_all([row, user])
    db.commit()
    logger.info("password reset completed user_id=%s", user.id)
