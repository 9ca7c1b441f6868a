from decimal import Decimal

import pytest

from hotel_store import crud, models, schemas
from hotel_store.database import Database, init_db


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "data")
    init_db(database)
    return database


@pytest.fixture
def alice(db):
    crud.register_account(db, "alice", "1234567890")
    crud.save_profile(db, "alice", "Alice Smith", "ID-001", "alice@example.com", "1 Main St", "1234567890")
    return schemas.SessionContext(username="alice")


@pytest.fixture
def bob(db):
    crud.register_account(db, "bob", "0987654321")
    crud.save_profile(db, "bob", "Bob Jones", "ID-002", "bob@example.com", "2 Main St", "0987654321")
    return schemas.SessionContext(username="bob")


@pytest.fixture
def make_booking(db):
    counter = iter(range(1, 10_000))

    def _make(room_number=101, check_in="2024-06-01", check_out="2024-06-03", username="alice",
              total_price="200.00", status=models.BookingStatus.ACTIVE,
              created_at="2024-06-01 09:00:00", booking_id=None):
        record = models.Booking(
            username=username,
            room_number=room_number,
            created_at=created_at,
            check_in=check_in,
            check_out=check_out,
            total_price=Decimal(total_price),
            status=status,
            booking_id=booking_id if booking_id is not None else next(counter),
        )
        db.bookings.append(record)
        return record

    return _make
