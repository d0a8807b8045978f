from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.session import Base
from backoffice.models.common import IntIdMixin

class Country(Base, IntIdMixin):
    __tablename__ = "countries"
    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)

class State(Base, IntIdMixin):
    __tablename__ = "states"
    country_id: Mapped[int] = mapped_column(ForeignKey("countries.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)

class City(Base, IntIdMixin):
    __tablename__ = "cities"
    state_id: Mapped[int] = mapped_column(ForeignKey("states.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
