from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import User, get_current_user
from app.core.database import as_utc
from app.schemas.rental import AvailabilityOut
from app.services.availability import is_available
from app.services.directory import find_vehicle

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("/{vehicle_id}/availability", response_model=AvailabilityOut)
def vehicle_availability(
    vehicle_id: int,
    pickup_date: datetime = Query(..., description="ISO date-time"),
    return_date: datetime = Query(..., description="ISO date-time"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    pickup_date, return_date = as_utc(pickup_date), as_utc(return_date)
    vehicle = find_vehicle(db, vehicle_id)
    return {
        "vehicle_id": vehicle.id,
        "pickup_date": pickup_date,
        "return_date": return_date,
        "available": is_available(db, vehicle.id, pickup_date, return_date),
    }
