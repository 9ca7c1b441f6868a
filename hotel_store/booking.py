"""
Booking lifecycle and revenue.

Rooms and Bookings are two separate files with no shared transaction. A
booking is appended first and the room flag rewritten second; if the process
dies between the two, the booking stands and the flag is stale until
``crud.refresh_room_statuses`` runs (the service does so at startup).
Availability itself is always decided from the Bookings table, never from the
flag.
"""
import logging
from decimal import Decimal
from typing import Optional

from . import crud, dates, models, schemas
from .database import Database
from .errors import (IncompleteProfile, InvalidDateFormat, InvalidDateOrder,
                     PastCheckIn, RoomUnavailable)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def next_booking_id(db: Database) -> int:
    # Read ids off raw rows: malformed rows survive rewrites, so their ids stay taken.
    ids = (line.rstrip("\r\n").rsplit(models.DELIMITER, 1)[-1].strip() for line in db.bookings.raw_lines())
    return max((int(value) for value in ids if value.isdigit()), default=0) + 1


def create_booking(db: Database, session: schemas.SessionContext, room_number: int,
                   check_in_raw: str, check_out_raw: str,
                   now: Optional[str] = None) -> schemas.BookingReceipt:
    username = session.require_user()
    now = now or dates.now_timestamp()
    today = now[:10]

    check_in = dates.parse_date(check_in_raw)
    check_out = dates.parse_date(check_out_raw)
    if check_in is None or check_out is None:
        raise InvalidDateFormat()
    if check_in >= check_out:
        raise InvalidDateOrder()
    # Rolled-over dates such as 2024-06-31 can sort before check-out yet cover no nights.
    nights = dates.night_count(check_in, check_out)
    if nights <= 0:
        raise InvalidDateOrder()
    if not dates.is_today_or_future(check_in, today):
        raise PastCheckIn()
    if not crud.is_room_available(db, room_number, check_in, check_out):
        raise RoomUnavailable()
    if not crud.get_profile(db, username).is_complete:
        raise IncompleteProfile()

    # Unknown room numbers are not rejected; they book at price 0.
    room = crud.get_room(db, room_number)
    nightly = room.price if room else Decimal("0")
    total = (nightly * nights).quantize(CENT)

    booking = models.Booking(
        username=username,
        room_number=room_number,
        created_at=now,
        check_in=check_in,
        check_out=check_out,
        total_price=total,
        status=models.BookingStatus.ACTIVE,
        booking_id=next_booking_id(db),
    )
    db.bookings.append(booking)
    crud.set_room_status(db, room_number, models.RoomStatus.BOOKED)
    logger.info("Booking %s: %s room %s %s..%s (%d nights, %s)",
                booking.booking_id, username, room_number, check_in, check_out, nights, total)

    return schemas.BookingReceipt(
        booking_id=booking.booking_id,
        room_number=room_number,
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        total_price=total,
        created_at=now,
    )


def cancel_booking(db: Database, booking_id: int,
                   session: Optional[schemas.SessionContext] = None,
                   today: Optional[str] = None) -> Optional[models.Booking]:
    """
    Flip an active booking to canceled and refresh its room's status flag.

    Returns the canceled booking, or None when no booking with that id is
    visible to ``session`` (customers only see their own). A missing id is not
    an error at this layer.
    """
    canceled = None

    def cancel(booking):
        nonlocal canceled
        if booking.booking_id != booking_id:
            return booking
        if session is not None and not session.may_manage(booking.username):
            return booking
        if booking.is_active:
            booking = booking.model_copy(update={"status": models.BookingStatus.CANCELED})
        canceled = booking
        return booking

    bookings = db.bookings.rewrite(cancel)
    if canceled is None:
        return None

    status = crud.room_status_from_bookings(bookings, canceled.room_number, today or dates.today())
    crud.set_room_status(db, canceled.room_number, status)
    logger.info("Booking %s canceled, room %s now %s", booking_id, canceled.room_number, status.value)
    return canceled


# --- Revenue ---
def _canonical(value: str) -> str:
    parsed = dates.parse_date(value)
    if parsed is None or not dates.validate_date(parsed):
        raise InvalidDateFormat()
    return parsed


def _revenue(db: Database, start: str, end: str) -> Decimal:
    total = sum(
        (b.total_price for b in db.bookings.scan(lambda b: b.is_active and start <= b.created_on <= end)),
        Decimal("0"),
    )
    return total.quantize(CENT)


def daily_revenue(db: Database, date: str) -> Decimal:
    day = _canonical(date)
    return _revenue(db, day, day)


def weekly_revenue(db: Database, date: str) -> Decimal:
    monday, sunday = dates.week_range(_canonical(date))
    return _revenue(db, monday, sunday)


# --- Receipts ---
RECEIPT_RULE = "=" * 37


def format_receipt(booking: models.Booking) -> str:
    return "\n".join([
        "========== BOOKING RECEIPT ==========",
        f"Booking ID: {booking.booking_id}",
        f"Customer: {booking.username}",
        f"Room Number: {booking.room_number}",
        f"Booking Date: {booking.created_at}",
        f"Check-in: {booking.check_in}",
        f"Check-out: {booking.check_out}",
        f"Total Price: ${booking.total_price:.2f}",
        f"Status: {booking.status.value}",
        RECEIPT_RULE,
    ]) + "\n"


def receipt_history(db: Database, username: str) -> str:
    receipts = [format_receipt(b) for b in crud.get_user_bookings(db, username)]
    if not receipts:
        receipts = ["No receipts found.\n"]
    return "========== RECEIPT HISTORY ==========\n\n" + "".join(receipts)
