from datetime import date
from sqlalchemy import Boolean, Date, ForeignKey, String, and_
from sqlalchemy.orm import Mapped, mapped_column, relationship
from backoffice.db.session import Base
from backoffice.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin
from backoffice.models.geo import City, Country, State
from backoffice.models.role import Role
from backoffice.models.user_role import UserRole

class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "users"
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    country_id: Mapped[int | None] = mapped_column(ForeignKey("countries.id"), nullable=True)
    state_id: Mapped[int | None] = mapped_column(ForeignKey("states.id"), nullable=True)
    city_id: Mapped[int | None] = mapped_column(ForeignKey("cities.id"), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    country: Mapped[Country | None] = relationship(Country)
    state: Mapped[State | None] = relationship(State)
    city: Mapped[City | None] = relationship(City)
    roles: Mapped[list[Role]] = relationship(
        Role,
        secondary=UserRole.__table__,
        primaryjoin=lambda: User.id == UserRole.user_id,
        secondaryjoin=lambda: and_(Role.id == UserRole.role_id, Role.is_deleted.is_(False)),
        order_by=Role.name,
        viewonly=True,
    )
