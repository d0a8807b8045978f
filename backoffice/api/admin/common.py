from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from backoffice.models.common import utcnow
from backoffice.schemas.listing import ResponseData


def ok(message: str, data: Any = None) -> ResponseData:
    return ResponseData(success=True, message=message, data=data)


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=409, detail=detail)


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)


def load_live_or_404(db: Session, model, row_id, detail: str):
    row = db.query(model).filter(model.id == row_id, model.is_deleted.is_(False)).first()
    if row is None:
        raise HTTPException(status_code=404, detail=detail)
    return row


def soft_delete(db: Session, row) -> None:
    row.is_deleted = True
    row.updated_at = utcnow()
    db.add(row)
