from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import ADMIN, User, get_current_user, require_role
from app.models.enums import RentalStatus
from app.schemas.rental import CancellationQuote, RentalCreate, RentalOut, RentalStatusChange, RentalUpdate
from app.services import rentals

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post("", response_model=RentalOut, status_code=status.HTTP_201_CREATED)
def create_rental(
    payload: RentalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return rentals.create_rental(db, current_user, **payload.model_dump())


@router.get("", response_model=List[RentalOut])
def list_my_rentals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[RentalStatus] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return rentals.list_user_rentals(db, current_user.id, status=status, limit=limit, offset=offset)


@router.get("/{rental_id}", response_model=RentalOut)
def get_rental(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return rentals.get_rental(db, current_user, rental_id)


@router.patch("/{rental_id}", response_model=RentalOut)
def update_rental(
    rental_id: int,
    payload: RentalUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"version"})
    return rentals.update_rental(db, current_user, rental_id, changes, expected_version=payload.version)


@router.post("/{rental_id}/cancel", response_model=RentalOut)
def cancel_rental(
    rental_id: int,
    payload: Optional[RentalStatusChange] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    version = payload.version if payload else None
    return rentals.cancel_rental(db, current_user, rental_id, expected_version=version)


@router.get("/{rental_id}/cancellation-quote", response_model=CancellationQuote)
def cancellation_quote(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return rentals.cancellation_quote(db, current_user, rental_id)


# Admin lifecycle steps


@router.post("/{rental_id}/confirm", response_model=RentalOut)
def confirm_rental(
    rental_id: int,
    payload: Optional[RentalStatusChange] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    version = payload.version if payload else None
    return rentals.confirm_rental(db, current_user, rental_id, expected_version=version)


@router.post("/{rental_id}/activate", response_model=RentalOut)
def activate_rental(
    rental_id: int,
    payload: Optional[RentalStatusChange] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    version = payload.version if payload else None
    return rentals.activate_rental(db, current_user, rental_id, expected_version=version)


@router.post("/{rental_id}/complete", response_model=RentalOut)
def complete_rental(
    rental_id: int,
    payload: Optional[RentalStatusChange] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    version = payload.version if payload else None
    return rentals.complete_rental(db, current_user, rental_id, expected_version=version)
