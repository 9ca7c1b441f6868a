"""
Line-oriented tables on top of plain text files.

Every table is one file with one colon-delimited record per line. Reads are
full scans; updates load the whole table, transform it in memory and replace
the file atomically (temporary file + ``os.replace``), so a reader never sees
a half-written table. There is no locking: one process per data directory.
"""
import logging
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from . import config, models
from .errors import RecordFormatError

logger = logging.getLogger(__name__)

SEED_ROOMS = [
    models.Room(room_number=101, type="Single", price=Decimal("100.00"),
                facilities=["WiFi", "TV", "AC"]),
    models.Room(room_number=102, type="Double", price=Decimal("150.00"),
                facilities=["WiFi", "TV", "AC", "Meal Service"]),
    models.Room(room_number=103, type="Suite", price=Decimal("300.00"),
                facilities=["WiFi", "TV", "AC", "Meal Service", "Jacuzzi"]),
    models.Room(room_number=104, type="Single", price=Decimal("120.00"),
                facilities=["WiFi", "TV", "AC", "Balcony"]),
    models.Room(room_number=105, type="Double", price=Decimal("180.00"),
                facilities=["WiFi", "TV", "AC", "Meal Service", "Balcony"]),
]


def write_atomic(path: Path, lines: Iterable[str]) -> None:
    """Replace ``path`` with ``lines`` without ever truncating it in place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as tmp:
            tmp.writelines(lines)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class Table:
    def __init__(self, path: Path, model: type[models.Record]):
        self.path = Path(path)
        self.model = model

    @property
    def name(self) -> str:
        return self.path.name

    def exists(self) -> bool:
        return self.path.exists()

    def _lines(self) -> Iterator[tuple[int, str]]:
        try:
            handle = open(self.path, "r", encoding="utf-8", newline="")
        except FileNotFoundError:
            return
        with handle:
            for lineno, line in enumerate(handle, start=1):
                if line.strip():
                    yield lineno, line

    def raw_lines(self) -> Iterator[str]:
        """Every non-blank row as stored, parseable or not."""
        for _, line in self._lines():
            yield line

    def scan(self, predicate: Optional[Callable] = None) -> Iterator[models.Record]:
        """
        Yield every well-formed record matching ``predicate``.

        The file is reopened on each call, so the result can be scanned again
        by calling ``scan`` again. Rows that do not parse are logged and skipped.
        """
        for lineno, line in self._lines():
            try:
                record = self.model.from_line(line)
            except RecordFormatError as exc:
                logger.warning("Skipping malformed row %s:%d (%s): %r", self.name, lineno, exc, line)
                continue
            if predicate is None or predicate(record):
                yield record

    def all(self) -> list:
        return list(self.scan())

    def first(self, predicate: Callable):
        return next(self.scan(predicate), None)

    def get(self, key):
        return self.first(lambda record: record.key() == key)

    def append(self, record: models.Record) -> None:
        line = record.to_line()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a+b") as handle:
            handle.seek(0, os.SEEK_END)
            if handle.tell():
                handle.seek(-1, os.SEEK_END)
                if handle.read(1) != b"\n":
                    handle.write(b"\n")
            handle.write(line.encode("utf-8"))

    def _transform(self, transform: Callable) -> tuple[list, list[str]]:
        records, lines = [], []
        for lineno, line in self._lines():
            try:
                record = self.model.from_line(line)
            except RecordFormatError as exc:
                # Unparseable rows survive rewrites untouched.
                logger.warning("Keeping malformed row %s:%d (%s): %r", self.name, lineno, exc, line)
                lines.append(line if line.endswith("\n") else line + "\n")
                continue
            record = transform(record)
            if record is None:
                continue
            records.append(record)
            lines.append(record.to_line())
        return records, lines

    def rewrite(self, transform: Callable) -> list:
        """
        Apply ``transform`` to every record and replace the table with the result.

        ``transform`` returns the record (possibly a modified copy) to keep it,
        or None to drop it. Relative order is preserved. Returns the records
        written.
        """
        records, lines = self._transform(transform)
        write_atomic(self.path, lines)
        return records

    def upsert(self, record: models.Record) -> bool:
        """Replace the row sharing ``record``'s key, or append. True if replaced."""
        key = record.key()
        found = False

        def replace(existing):
            nonlocal found
            if existing.key() != key:
                return existing
            if found:
                return None
            found = True
            return record

        _, lines = self._transform(replace)
        if not found:
            lines.append(record.to_line())
        write_atomic(self.path, lines)
        return found


class Database:
    def __init__(self, data_dir=None):
        self.data_dir = Path(data_dir or config.DATA_DIR)
        self.rooms = Table(self.data_dir / models.Room.table_name, models.Room)
        self.bookings = Table(self.data_dir / models.Booking.table_name, models.Booking)
        self.accounts = Table(self.data_dir / models.Account.table_name, models.Account)
        self.profiles = Table(self.data_dir / models.Profile.table_name, models.Profile)
        self.admin_secret = self.data_dir / config.ADMIN_PASS_FILE

    def __repr__(self):
        return f"Database({str(self.data_dir)!r})"


def init_db(db: Database, seed_rooms=SEED_ROOMS) -> None:
    """Create the data directory and any missing table with its initial content."""
    db.data_dir.mkdir(parents=True, exist_ok=True)
    if not db.rooms.exists():
        write_atomic(db.rooms.path, [room.to_line() for room in seed_rooms])
        logger.info("Seeded %s with %d rooms", db.rooms.name, len(seed_rooms))
    for table in (db.bookings, db.accounts, db.profiles):
        if not table.exists():
            table.path.touch()
    if not db.admin_secret.exists():
        write_atomic(db.admin_secret, [config.ADMIN_DEFAULT_PASSWORD + "\n"])
        logger.info("Initialised admin password file")
