from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.session import Base
from backoffice.models.common import IntIdMixin, TimestampMixin, SoftDeleteMixin

class CmsPage(Base, IntIdMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "cms_pages"
    key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    meta_keyword: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
