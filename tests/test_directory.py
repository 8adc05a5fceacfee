import pytest

from app.core.errors import NotFoundError
from app.services import directory


def test_find_user_by_id_and_email(db, customer):
    assert directory.find_user(db, customer.id).email == customer.email
    assert directory.find_user_by_email(db, "alice@example.com").id == customer.id


def test_unknown_user(db, customer):
    with pytest.raises(NotFoundError):
        directory.find_user(db, "nobody")
    with pytest.raises(NotFoundError, match="ghost@example.com"):
        directory.find_user_by_email(db, "ghost@example.com")


def test_find_vehicle(db, vehicle):
    assert directory.find_vehicle(db, vehicle.id).license_plate == "KA-01-1234"
    assert directory.find_vehicle(db, vehicle.id, lock=True).id == vehicle.id
    with pytest.raises(NotFoundError):
        directory.find_vehicle(db, 404)
