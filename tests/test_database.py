import logging
from decimal import Decimal

import pytest

from hotel_store import models
from hotel_store.database import SEED_ROOMS, Database, Table, init_db, write_atomic
from hotel_store.errors import RecordFormatError

ROOM_LINE = "101:Single:100.00:Available:WiFi,TV,AC\n"
BOOKING_LINE = "alice:101:2024-06-01 10:15:00:2024-06-01:2024-06-03:200.00:active:7\n"


# --- Record format ---
def test_room_from_line():
    room = models.Room.from_line(ROOM_LINE)
    assert room.room_number == 101
    assert room.type == "Single"
    assert room.price == Decimal("100.00")
    assert room.status == models.RoomStatus.AVAILABLE
    assert room.facilities == ["WiFi", "TV", "AC"]
    assert room.to_line() == ROOM_LINE


def test_room_facilities_are_greedy_to_end_of_line():
    room = models.Room.from_line("103:Suite:300:Booked:WiFi,Meal Service: Deluxe")
    assert room.facilities == ["WiFi", "Meal Service: Deluxe"]
    assert room.status == models.RoomStatus.BOOKED


def test_booking_timestamp_keeps_its_colons():
    booking = models.Booking.from_line(BOOKING_LINE)
    assert booking.username == "alice"
    assert booking.created_at == "2024-06-01 10:15:00"
    assert booking.created_on == "2024-06-01"
    assert booking.check_in == "2024-06-01"
    assert booking.check_out == "2024-06-03"
    assert booking.total_price == Decimal("200.00")
    assert booking.is_active
    assert booking.booking_id == 7
    assert booking.to_line() == BOOKING_LINE


def test_prices_are_written_with_two_decimals():
    room = models.Room(room_number=1, type="Single", price=Decimal("99.5"))
    assert room.to_line() == "1:Single:99.50:Available:\n"


@pytest.mark.parametrize("line", [
    "garbage",
    "101:Single:100.00",
    "abc:Single:100.00:Available:WiFi",
    "101:Single:cheap:Available:WiFi",
    "101:Single:-5.00:Available:WiFi",
    "101:Single:100.00:Occupied:WiFi",
])
def test_malformed_room_rows(line):
    with pytest.raises(RecordFormatError):
        models.Room.from_line(line)


def test_malformed_booking_rows():
    with pytest.raises(RecordFormatError):
        models.Booking.from_line("alice:101:2024-06-01:2024-06-03:200.00:active")


def test_to_line_rejects_delimiter_outside_greedy_field():
    profile = models.Profile(username="alice", address="Flat 3: Main St")
    with pytest.raises(RecordFormatError):
        profile.to_line()


def test_to_line_rejects_line_breaks():
    profile = models.Profile(username="alice", phone="123\n456")
    with pytest.raises(RecordFormatError):
        profile.to_line()


# --- Table ---
@pytest.fixture
def rooms(tmp_path):
    return Table(tmp_path / "rooms.txt", models.Room)


def test_scan_missing_table_is_empty(rooms):
    assert rooms.all() == []
    assert rooms.first(lambda r: True) is None


def test_scan_is_restartable(rooms):
    rooms.path.write_text(ROOM_LINE + "102:Double:150.00:Available:WiFi\n")
    assert [r.room_number for r in rooms.scan()] == [101, 102]
    assert [r.room_number for r in rooms.scan()] == [101, 102]


def test_scan_applies_predicate(rooms):
    rooms.path.write_text(ROOM_LINE + "102:Double:150.00:Available:WiFi\n")
    assert [r.room_number for r in rooms.scan(lambda r: r.type == "Double")] == [102]
    assert rooms.get(101).type == "Single"
    assert rooms.get(999) is None


def test_scan_skips_and_logs_malformed_rows(rooms, caplog):
    rooms.path.write_text(ROOM_LINE + "this is not a room\n\n102:Double:150.00:Available:WiFi\n")
    with caplog.at_level(logging.WARNING):
        found = rooms.all()
    assert [r.room_number for r in found] == [101, 102]
    assert "rooms.txt:2" in caplog.text


def test_append_creates_table(rooms):
    rooms.append(models.Room.from_line(ROOM_LINE))
    assert rooms.path.read_text() == ROOM_LINE


def test_append_terminates_unfinished_last_line(rooms):
    rooms.path.write_text(ROOM_LINE.rstrip("\n"))
    rooms.append(models.Room(room_number=102, type="Double", price=Decimal("150")))
    assert rooms.path.read_text() == ROOM_LINE + "102:Double:150.00:Available:\n"


def test_rewrite_preserves_order_and_drops(rooms):
    rooms.path.write_text("".join(room.to_line() for room in SEED_ROOMS))

    def transform(room):
        if room.room_number == 102:
            return None
        if room.room_number == 104:
            return room.model_copy(update={"status": models.RoomStatus.BOOKED})
        return room

    kept = rooms.rewrite(transform)
    assert [r.room_number for r in kept] == [101, 103, 104, 105]
    assert [r.room_number for r in rooms.all()] == [101, 103, 104, 105]
    assert rooms.get(104).status == models.RoomStatus.BOOKED


def test_rewrite_carries_malformed_rows_through(rooms):
    rooms.path.write_text(ROOM_LINE + "not a room\n102:Double:150.00:Available:WiFi\n")
    rooms.rewrite(lambda room: room)
    assert rooms.path.read_text().splitlines()[1] == "not a room"


def test_rewrite_leaves_no_temporary_files(rooms):
    rooms.path.write_text(ROOM_LINE)
    rooms.rewrite(lambda room: room)
    assert sorted(p.name for p in rooms.path.parent.iterdir()) == ["rooms.txt"]


def test_failed_rewrite_keeps_old_content(rooms):
    rooms.path.write_text(ROOM_LINE)

    def explode(room):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        rooms.rewrite(explode)
    assert rooms.path.read_text() == ROOM_LINE


def test_upsert_replaces_or_appends(tmp_path):
    profiles = Table(tmp_path / "user_profiles.txt", models.Profile)
    assert profiles.upsert(models.Profile(username="alice", full_name="Alice")) is False
    assert profiles.upsert(models.Profile(username="bob", full_name="Bob")) is False
    assert profiles.upsert(models.Profile(username="alice", full_name="Alice Smith")) is True
    assert [(p.username, p.full_name) for p in profiles.all()] == [("alice", "Alice Smith"), ("bob", "Bob")]


def test_upsert_collapses_duplicate_keys(tmp_path):
    profiles = Table(tmp_path / "user_profiles.txt", models.Profile)
    profiles.path.write_text("alice:A::::\nalice:B::::\n")
    profiles.upsert(models.Profile(username="alice", full_name="C"))
    assert profiles.path.read_text() == "alice:C::::\n"


def test_write_atomic_creates_parent(tmp_path):
    target = tmp_path / "nested" / "admin_pass.txt"
    write_atomic(target, ["secret\n"])
    assert target.read_text() == "secret\n"


# --- Bootstrap ---
def test_init_db_seeds_tables(tmp_path):
    db = Database(tmp_path / "data")
    init_db(db)
    rooms = db.rooms.all()
    assert [r.room_number for r in rooms] == [101, 102, 103, 104, 105]
    assert {r.type for r in rooms} == {"Single", "Double", "Suite"}
    assert all(r.status == models.RoomStatus.AVAILABLE for r in rooms)
    assert db.bookings.path.read_text() == ""
    assert db.accounts.path.read_text() == ""
    assert db.profiles.path.read_text() == ""
    assert db.admin_secret.read_text() == "admin123\n"


def test_init_db_keeps_existing_files(tmp_path):
    db = Database(tmp_path / "data")
    db.data_dir.mkdir()
    db.rooms.path.write_text(ROOM_LINE)
    db.admin_secret.write_text("changed\n")
    init_db(db)
    assert db.rooms.path.read_text() == ROOM_LINE
    assert db.admin_secret.read_text() == "changed\n"
