import logging
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from . import booking, config, crud, dates, models, schemas
from .database import Database, init_db
from .errors import BookingError, ConflictError, InvalidDateFormat, InvalidDateOrder, RecordFormatError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- FastAPI app ---
app = FastAPI(title="Hotel booking store")


def get_db():
    yield Database(config.DATA_DIR)


@app.on_event("startup")
async def on_startup():
    factory = app.dependency_overrides.get(get_db, get_db)
    db = next(factory())
    init_db(db)
    crud.refresh_room_statuses(db)
    logger.info("Serving tables from %s", db.data_dir)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = 409 if isinstance(exc, ConflictError) else 400
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": exc.code})


@app.exception_handler(RecordFormatError)
async def record_format_handler(request: Request, exc: RecordFormatError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": "RecordFormatError"})


# --- Sessions ---
def get_session(request: Request, db: Database = Depends(get_db)) -> schemas.SessionContext:
    username = request.headers.get("X-Username")
    phone = request.headers.get("X-Phone")
    if not username or not phone:
        raise HTTPException(status_code=401, detail="Not authorized")
    if not crud.validate_credentials(db, username, phone):
        raise HTTPException(status_code=403, detail="Invalid username or phone number.")
    return schemas.SessionContext(username=username)


def get_admin_session(request: Request, db: Database = Depends(get_db)) -> schemas.SessionContext:
    password = request.headers.get("X-Admin-Password")
    if password is None:
        raise HTTPException(status_code=401, detail="Not authorized")
    if not crud.validate_admin_password(db, password):
        raise HTTPException(status_code=403, detail="Invalid admin password.")
    return schemas.SessionContext(is_admin=True)


# --- Accounts ---
@app.post("/api/register", status_code=201)
def register(payload: schemas.RegisterRequest, db: Database = Depends(get_db)):
    crud.register(db, payload.username, payload.phone, payload.confirm_phone)
    return {"ok": True, "message": "Registration successful! Please login."}


@app.post("/api/login", response_model=schemas.LoginResult)
def login(payload: schemas.LoginRequest, db: Database = Depends(get_db)):
    if not crud.validate_credentials(db, payload.username, payload.phone):
        raise HTTPException(status_code=401, detail="Invalid username or phone number.")
    profile = crud.get_profile(db, payload.username)
    return schemas.LoginResult(username=payload.username, profile_complete=profile.is_complete)


@app.get("/api/profile", response_model=models.Profile)
def read_profile(session: schemas.SessionContext = Depends(get_session), db: Database = Depends(get_db)):
    return crud.get_profile(db, session.username)


@app.put("/api/profile", response_model=models.Profile)
def update_profile(
    payload: schemas.ProfileUpdate,
    session: schemas.SessionContext = Depends(get_session),
    db: Database = Depends(get_db),
):
    return crud.save_profile(db, session.username, **payload.model_dump())


# --- Rooms ---
@app.get("/api/rooms", response_model=list[models.Room])
def get_rooms(
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    room_type: Optional[str] = Query(None, alias="type"),
    facility: Optional[str] = None,
    db: Database = Depends(get_db),
):
    return crud.list_rooms(db, min_price=min_price, max_price=max_price, room_type=room_type, facility=facility)


@app.get("/api/rooms/{room_number}/availability", response_model=schemas.Availability)
def room_availability(room_number: int, check_in: str, check_out: str, db: Database = Depends(get_db)):
    start = dates.parse_date(check_in)
    end = dates.parse_date(check_out)
    if start is None or end is None:
        raise InvalidDateFormat()
    if start >= end:
        raise InvalidDateOrder()
    return schemas.Availability(
        room_number=room_number,
        check_in=start,
        check_out=end,
        available=crud.is_room_available(db, room_number, start, end),
    )


# --- Bookings ---
@app.post("/api/book", response_model=schemas.BookingReceipt)
def create_booking(
    payload: schemas.BookingCreate,
    session: schemas.SessionContext = Depends(get_session),
    db: Database = Depends(get_db),
):
    return booking.create_booking(db, session, payload.room_number, payload.check_in, payload.check_out)


@app.get("/api/my-bookings", response_model=list[models.Booking])
def get_my_bookings(session: schemas.SessionContext = Depends(get_session), db: Database = Depends(get_db)):
    return crud.get_user_bookings(db, session.username)


@app.get("/api/receipts", response_class=PlainTextResponse)
def get_receipts(session: schemas.SessionContext = Depends(get_session), db: Database = Depends(get_db)):
    return booking.receipt_history(db, session.username)


def _cancel(db: Database, booking_id: int, session: schemas.SessionContext):
    canceled = booking.cancel_booking(db, booking_id, session=session)
    if canceled is None:
        raise HTTPException(status_code=404, detail="Booking not found or you are not allowed to cancel it")
    return {"ok": True, "message": f"Booking {booking_id} canceled successfully."}


@app.delete("/api/booking/{booking_id}")
def cancel_booking(
    booking_id: int,
    session: schemas.SessionContext = Depends(get_session),
    db: Database = Depends(get_db),
):
    return _cancel(db, booking_id, session)


# --- Admin ---
@app.post("/api/admin/login")
def admin_login(session: schemas.SessionContext = Depends(get_admin_session)):
    return {"ok": True, "message": "Admin login successful!"}


@app.get("/api/admin/bookings", response_model=list[models.Booking])
def admin_bookings(
    booking_id: Optional[int] = None,
    username: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    session: schemas.SessionContext = Depends(get_admin_session),
    db: Database = Depends(get_db),
):
    return crud.search_bookings(db, booking_id=booking_id, username=username,
                                start_date=start_date, end_date=end_date)


@app.delete("/api/admin/booking/{booking_id}")
def admin_cancel_booking(
    booking_id: int,
    session: schemas.SessionContext = Depends(get_admin_session),
    db: Database = Depends(get_db),
):
    return _cancel(db, booking_id, session)


@app.get("/api/admin/revenue", response_model=schemas.Revenue)
def admin_revenue(
    date: str,
    session: schemas.SessionContext = Depends(get_admin_session),
    db: Database = Depends(get_db),
):
    daily = booking.daily_revenue(db, date)
    weekly = booking.weekly_revenue(db, date)
    week_start, week_end = dates.week_range(dates.parse_date(date))
    return schemas.Revenue(date=dates.parse_date(date), week_start=week_start, week_end=week_end,
                           daily=daily, weekly=weekly)


@app.post("/api/admin/password")
def admin_change_password(
    payload: schemas.PasswordChange,
    session: schemas.SessionContext = Depends(get_admin_session),
    db: Database = Depends(get_db),
):
    crud.change_admin_password(db, payload.new_password, payload.confirm_password)
    return {"ok": True, "message": "Admin password changed successfully."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
