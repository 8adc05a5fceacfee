"""Lookups against the user directory and vehicle catalog."""
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.user import User
from app.models.vehicle import Vehicle


def find_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def find_user_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError(f"User not found with email: {email}")
    return user


def find_vehicle(db: Session, vehicle_id: int, lock: bool = False) -> Vehicle:
    """
    Fetch a vehicle. With ``lock=True`` the row is held FOR UPDATE until the
    transaction ends, which serialises bookings of the same vehicle.
    """
    q = db.query(Vehicle).filter(Vehicle.id == vehicle_id)
    if lock:
        q = q.with_for_update()
    vehicle = q.first()
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle
