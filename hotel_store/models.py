from decimal import Decimal
from enum import Enum
from typing import ClassVar

import pydantic
from pydantic import BaseModel, field_validator

from . import config
from .errors import RecordFormatError

DELIMITER = ":"


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    BOOKED = "Booked"


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"


def split_fields(line: str, count: int, greedy: int) -> list[str]:
    """
    Split one row into exactly ``count`` fields.

    Fields left of ``greedy`` are cut from the left and fields right of it
    from the right, so the greedy field is the only one that may contain the
    delimiter.
    """
    head = line.split(DELIMITER, greedy)
    if len(head) != greedy + 1:
        raise RecordFormatError(f"expected {count} fields, got {len(head)}")
    tail_count = count - greedy - 1
    tail = head.pop().rsplit(DELIMITER, tail_count) if tail_count else [head.pop()]
    if len(tail) != tail_count + 1:
        raise RecordFormatError(f"expected {count} fields, got {len(head) + len(tail)}")
    return head + tail


def _dump(value) -> str:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, (list, tuple)):
        return ",".join(value)
    return str(value)


class Record(BaseModel):
    table_name: ClassVar[str]
    key_field: ClassVar[str]
    greedy_field: ClassVar[str | None] = None

    @classmethod
    def columns(cls) -> tuple[str, ...]:
        return tuple(cls.model_fields)

    @classmethod
    def _greedy_index(cls) -> int:
        columns = cls.columns()
        return columns.index(cls.greedy_field) if cls.greedy_field else len(columns) - 1

    @classmethod
    def from_line(cls, line: str):
        columns = cls.columns()
        values = split_fields(line.rstrip("\r\n"), len(columns), cls._greedy_index())
        try:
            return cls.model_validate(dict(zip(columns, values)))
        except pydantic.ValidationError as exc:
            raise RecordFormatError(str(exc)) from exc

    def to_line(self) -> str:
        greedy = self._greedy_index()
        values = []
        for index, column in enumerate(self.columns()):
            text = _dump(getattr(self, column))
            if "\n" in text or "\r" in text:
                raise RecordFormatError(f"{column} must not contain a line break")
            if index != greedy and DELIMITER in text:
                raise RecordFormatError(f"{column} must not contain {DELIMITER!r}")
            values.append(text)
        return DELIMITER.join(values) + "\n"

    def key(self):
        return getattr(self, self.key_field)


class Room(Record):
    table_name: ClassVar[str] = config.ROOM_FILE
    key_field: ClassVar[str] = "room_number"

    room_number: int
    type: str
    price: Decimal = pydantic.Field(ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    facilities: list[str] = []

    @field_validator("facilities", mode="before")
    @classmethod
    def split_facilities(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class Booking(Record):
    table_name: ClassVar[str] = config.BOOKING_FILE
    key_field: ClassVar[str] = "booking_id"
    greedy_field: ClassVar[str] = "created_at"

    username: str
    room_number: int
    created_at: str
    check_in: str
    check_out: str
    total_price: Decimal
    status: BookingStatus = BookingStatus.ACTIVE
    booking_id: int

    @property
    def created_on(self) -> str:
        return self.created_at[:10]

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE


class Account(Record):
    table_name: ClassVar[str] = config.USER_FILE
    key_field: ClassVar[str] = "username"

    username: str
    phone: str


class Profile(Record):
    table_name: ClassVar[str] = config.USER_PROFILE_FILE
    key_field: ClassVar[str] = "username"

    username: str = ""
    full_name: str = ""
    id_number: str = ""
    email: str = ""
    address: str = ""
    phone: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.full_name and self.id_number)
