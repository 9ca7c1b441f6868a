import logging
from decimal import Decimal
from typing import Optional

from . import config, dates, models, utils
from .database import Database, write_atomic
from .errors import InvalidDateFormat, InvalidPassword, UsernameTaken, ValidationError

logger = logging.getLogger(__name__)


# --- Availability ---
def overlaps(check_in: str, check_out: str, other_in: str, other_out: str) -> bool:
    # Half-open [check_in, check_out): back-to-back stays do not collide.
    return not (check_out <= other_in or check_in >= other_out)


def is_room_available(db: Database, room_number: int, check_in: str, check_out: str,
                      booking_id_to_exclude: Optional[int] = None) -> bool:
    clash = db.bookings.first(
        lambda b: b.room_number == room_number
        and b.is_active
        and b.booking_id != booking_id_to_exclude
        and overlaps(check_in, check_out, b.check_in, b.check_out)
    )
    return clash is None


# --- Accounts ---
def get_account(db: Database, username: str):
    return db.accounts.get(username)


def username_exists(db: Database, username: str) -> bool:
    return get_account(db, username) is not None


def register_account(db: Database, username: str, phone: str) -> bool:
    if username_exists(db, username):
        return False
    db.accounts.append(models.Account(username=username, phone=phone))
    logger.info("Registered account %s", username)
    return True


def register(db: Database, username: str, phone: str, confirm_phone: str) -> models.Account:
    if not utils.is_valid_username(username):
        raise ValidationError("Username must be 3-20 characters (letters, numbers, underscore only)")
    if not utils.is_valid_phone(phone):
        raise ValidationError("Phone must be 10-15 digits only")
    if phone != confirm_phone:
        raise ValidationError("Phone numbers don't match")
    if not register_account(db, username, phone):
        raise UsernameTaken()
    return models.Account(username=username, phone=phone)


def validate_credentials(db: Database, username: str, phone: str) -> bool:
    match = db.accounts.first(lambda a: a.username == username and a.phone == phone)
    return match is not None


# --- Profiles ---
def profile_exists(db: Database, username: str) -> bool:
    return db.profiles.get(username) is not None


def get_profile(db: Database, username: str) -> models.Profile:
    return db.profiles.get(username) or models.Profile()


def save_profile(db: Database, username: str, full_name: str = "", id_number: str = "",
                 email: str = "", address: str = "", phone: str = "") -> models.Profile:
    profile = models.Profile(username=username, full_name=full_name, id_number=id_number,
                             email=email, address=address, phone=phone)
    replaced = db.profiles.upsert(profile)
    logger.info("%s profile for %s", "Updated" if replaced else "Created", username)
    return profile


# --- Admin secret ---
def read_admin_password(db: Database) -> str:
    if not db.admin_secret.exists():
        write_atomic(db.admin_secret, [config.ADMIN_DEFAULT_PASSWORD + "\n"])
        logger.info("Admin password file missing, initialised with the default")
        return config.ADMIN_DEFAULT_PASSWORD
    with open(db.admin_secret, "r", encoding="utf-8") as f:
        return f.readline().rstrip("\r\n")


def validate_admin_password(db: Database, candidate: str) -> bool:
    return candidate == read_admin_password(db)


def change_admin_password(db: Database, new_password: str, confirm_password: str) -> None:
    if len(new_password) < config.MIN_ADMIN_PASSWORD_LENGTH:
        raise InvalidPassword(
            f"Password must be at least {config.MIN_ADMIN_PASSWORD_LENGTH} characters long."
        )
    if new_password != confirm_password:
        raise InvalidPassword("Passwords do not match.")
    if utils.contains_line_break(new_password):
        raise InvalidPassword("Password must be a single line.")
    write_atomic(db.admin_secret, [new_password + "\n"])
    logger.info("Admin password changed")


# --- Rooms ---
def get_room(db: Database, room_number: int):
    return db.rooms.get(room_number)


def list_rooms(db: Database, min_price: Optional[Decimal] = None, max_price: Optional[Decimal] = None,
               room_type: Optional[str] = None, facility: Optional[str] = None) -> list:
    def wanted(room):
        if min_price is not None and room.price < min_price:
            return False
        if max_price is not None and room.price > max_price:
            return False
        if room_type and room.type != room_type:
            return False
        if facility and facility not in ",".join(room.facilities):
            return False
        return True

    return sorted(db.rooms.scan(wanted), key=lambda room: room.price)


def set_room_status(db: Database, room_number: int, status: models.RoomStatus) -> list:
    def update(room):
        if room.room_number == room_number:
            return room.model_copy(update={"status": status})
        return room

    return db.rooms.rewrite(update)


def room_status_from_bookings(bookings, room_number: int, today: str) -> models.RoomStatus:
    """Booked while the room holds an active booking that has not checked out yet."""
    for booking in bookings:
        if booking.room_number == room_number and booking.is_active and booking.check_out > today:
            return models.RoomStatus.BOOKED
    return models.RoomStatus.AVAILABLE


def refresh_room_statuses(db: Database, today: Optional[str] = None) -> list:
    today = today or dates.today()
    bookings = db.bookings.all()

    def recompute(room):
        status = room_status_from_bookings(bookings, room.room_number, today)
        if status != room.status:
            logger.info("Room %s status %s -> %s", room.room_number, room.status.value, status.value)
            return room.model_copy(update={"status": status})
        return room

    return db.rooms.rewrite(recompute)


# --- Bookings ---
def get_booking(db: Database, booking_id: int):
    return db.bookings.get(booking_id)


def get_user_bookings(db: Database, username: str) -> list:
    return list(db.bookings.scan(lambda b: b.username == username))


def _filter_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    parsed = dates.parse_date(value)
    if parsed is None:
        raise InvalidDateFormat()
    return parsed


def search_bookings(db: Database, booking_id: Optional[int] = None, username: Optional[str] = None,
                    start_date: Optional[str] = None, end_date: Optional[str] = None) -> list:
    start_date = _filter_date(start_date)
    end_date = _filter_date(end_date)

    def wanted(booking):
        if booking_id is not None and booking.booking_id != booking_id:
            return False
        if username and username not in booking.username:
            return False
        if start_date and booking.created_on < start_date:
            return False
        if end_date and booking.created_on > end_date:
            return False
        return True

    return list(db.bookings.scan(wanted))
