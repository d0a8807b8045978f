from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.deps import require_permission
from backoffice.db.session import get_db
from backoffice.models.faq import Faq
from backoffice.schemas.admin import FaqOut, FaqUpsert
from backoffice.schemas.listing import ListQuery, PagedData, ResponseData
from backoffice.services.list_query import run_listing
from backoffice.services.listings import FAQ_LISTING
from backoffice.services.permissions import Permission

from .common import load_live_or_404, ok, soft_delete

router = APIRouter()


def faq_out(f: Faq) -> FaqOut:
    return FaqOut(id=f.id, question=f.question, answer=f.answer, is_active=bool(f.is_active), created_at=f.created_at)


@router.post("/query", response_model=ResponseData[PagedData[FaqOut]])
def query_faqs(lq: ListQuery, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_FAQ))):
    base = db.query(Faq).filter(Faq.is_deleted.is_(False))
    return run_listing(db, base, FAQ_LISTING, lq, faq_out)


@router.get("/{faq_id}", response_model=ResponseData[FaqOut])
def get_faq(faq_id: int, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_FAQ))):
    return ok("FAQ fetched successfully", faq_out(load_live_or_404(db, Faq, faq_id, "FAQ not found")))


@router.post("", status_code=201, response_model=ResponseData[FaqOut])
def create_faq(payload: FaqUpsert, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.ADD_FAQ))):
    faq = Faq(**payload.model_dump())
    db.add(faq); db.commit(); db.refresh(faq)
    return ok("FAQ created successfully", faq_out(faq))


@router.put("/{faq_id}", response_model=ResponseData[FaqOut])
def update_faq(faq_id: int, payload: FaqUpsert, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.EDIT_FAQ))):
    faq = load_live_or_404(db, Faq, faq_id, "FAQ not found")
    for k, v in payload.model_dump().items():
        setattr(faq, k, v)
    db.add(faq); db.commit(); db.refresh(faq)
    return ok("FAQ updated successfully", faq_out(faq))


@router.delete("/{faq_id}", response_model=ResponseData)
def delete_faq(faq_id: int, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.DELETE_FAQ))):
    faq = load_live_or_404(db, Faq, faq_id, "FAQ not found")
    soft_delete(db, faq)
    db.commit()
    return ok("FAQ deleted successfully")
