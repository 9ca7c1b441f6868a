from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from .errors import InvalidCredentials


class SessionContext(BaseModel):
    """Who is acting: a logged-in customer, the admin, or nobody."""

    username: Optional[str] = None
    is_admin: bool = False

    def require_user(self) -> str:
        if not self.username:
            raise InvalidCredentials("Please login first to book a room.")
        return self.username

    def may_manage(self, owner: str) -> bool:
        return self.is_admin or (self.username is not None and self.username == owner)


class RegisterRequest(BaseModel):
    username: str
    phone: str
    confirm_phone: str


class LoginRequest(BaseModel):
    username: str
    phone: str


class LoginResult(BaseModel):
    username: str
    profile_complete: bool


class ProfileUpdate(BaseModel):
    full_name: str = ""
    id_number: str = ""
    email: str = ""
    address: str = ""
    phone: str = ""


class BookingCreate(BaseModel):
    room_number: int
    check_in: str
    check_out: str


class BookingReceipt(BaseModel):
    booking_id: int
    room_number: int
    check_in: str
    check_out: str
    nights: int
    total_price: Decimal
    created_at: str


class Availability(BaseModel):
    room_number: int
    check_in: str
    check_out: str
    available: bool


class Revenue(BaseModel):
    date: str
    week_start: str
    week_end: str
    daily: Decimal
    weekly: Decimal


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str
