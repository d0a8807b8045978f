from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.session import Base
from backoffice.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

class Role(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "roles"
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    permissions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # Permission bitmask
