from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.session import Base
from backoffice.models.common import IntIdMixin, TimestampMixin, SoftDeleteMixin

class Faq(Base, IntIdMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "faqs"
    question: Mapped[str] = mapped_column(String(500), nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
