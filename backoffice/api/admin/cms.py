from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.deps import require_permission
from backoffice.db.session import get_db
from backoffice.models.cms_page import CmsPage
from backoffice.schemas.admin import CmsOut, CmsUpsert
from backoffice.schemas.listing import ListQuery, PagedData, ResponseData
from backoffice.services.list_query import run_listing
from backoffice.services.listings import CMS_LISTING
from backoffice.services.permissions import Permission

from .common import conflict, load_live_or_404, ok, soft_delete

router = APIRouter()


def cms_out(p: CmsPage) -> CmsOut:
    return CmsOut(
        id=p.id,
        key=p.key,
        title=p.title,
        meta_keyword=p.meta_keyword,
        content=p.content or "",
        is_active=bool(p.is_active),
        created_at=p.created_at,
    )


def _live_pages(db: Session):
    return db.query(CmsPage).filter(CmsPage.is_deleted.is_(False))


def _ensure_key_free(db: Session, key: str, *, exclude_id: int | None = None) -> None:
    q = _live_pages(db).filter(func.lower(CmsPage.key) == key.lower())
    if exclude_id is not None:
        q = q.filter(CmsPage.id != exclude_id)
    if q.first() is not None:
        raise conflict("A CMS page with this key already exists")


@router.post("/query", response_model=ResponseData[PagedData[CmsOut]])
def query_cms(lq: ListQuery, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_CMS))):
    return run_listing(db, _live_pages(db), CMS_LISTING, lq, cms_out)


@router.get("/{page_id}", response_model=ResponseData[CmsOut])
def get_cms(page_id: int, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.VIEW_CMS))):
    return ok("CMS page fetched successfully", cms_out(load_live_or_404(db, CmsPage, page_id, "CMS page not found")))


@router.post("", status_code=201, response_model=ResponseData[CmsOut])
def create_cms(payload: CmsUpsert, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.ADD_CMS))):
    _ensure_key_free(db, payload.key)
    page = CmsPage(**payload.model_dump())
    db.add(page)
    db.commit()
    db.refresh(page)
    return ok("CMS page created successfully", cms_out(page))


@router.put("/{page_id}", response_model=ResponseData[CmsOut])
def update_cms(
    page_id: int,
    payload: CmsUpsert,
    db: Session = Depends(get_db),
    admin=Depends(require_permission(Permission.EDIT_CMS)),
):
    page = load_live_or_404(db, CmsPage, page_id, "CMS page not found")
    _ensure_key_free(db, payload.key, exclude_id=page.id)
    for k, v in payload.model_dump().items():
        setattr(page, k, v)
    db.add(page)
    db.commit()
    db.refresh(page)
    return ok("CMS page updated successfully", cms_out(page))


@router.delete("/{page_id}", response_model=ResponseData)
def delete_cms(page_id: int, db: Session = Depends(get_db), admin=Depends(require_permission(Permission.DELETE_CMS))):
    page = load_live_or_404(db, CmsPage, page_id, "CMS page not found")
    soft_delete(db, page)
    db.commit()
    return ok("CMS page deleted successfully")
