from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.deps import get_active_admin
from backoffice.db.session import get_db
from backoffice.models.geo import City, Country, State
from backoffice.schemas.admin import GeoOption
from backoffice.schemas.listing import ResponseData

from .common import ok

router = APIRouter()


def _options(rows) -> list[GeoOption]:
    return [GeoOption(id=r.id, name=r.name) for r in rows]


@router.get("/countries", response_model=ResponseData[list[GeoOption]])
def list_countries(db: Session = Depends(get_db), admin=Depends(get_active_admin)):
    return ok("Countries fetched successfully", _options(db.query(Country).order_by(Country.name.asc()).all()))


@router.get("/countries/{country_id}/states", response_model=ResponseData[list[GeoOption]])
def list_states(country_id: int, db: Session = Depends(get_db), admin=Depends(get_active_admin)):
    rows = db.query(State).filter(State.country_id == country_id).order_by(State.name.asc()).all()
    return ok("States fetched successfully", _options(rows))


@router.get("/states/{state_id}/cities", response_model=ResponseData[list[GeoOption]])
def list_cities(state_id: int, db: Session = Depends(get_db), admin=Depends(get_active_admin)):
    rows = db.query(City).filter(City.state_id == state_id).order_by(City.name.asc()).all()
    return ok("Cities fetched successfully", _options(rows))
