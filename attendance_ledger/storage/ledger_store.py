"""Spreadsheet-backed attendance ledger.

Keeps the attendance table in an ``openpyxl`` workbook held in memory,
loads it once at startup and rewrites the whole file after every append.
Records are only ever appended; row position is their sole identity.
"""

import threading
import zipfile
from dataclasses import asdict, dataclass
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ..utils.logger import setup_logger
from .errors import InvalidRecord, PersistError, StorageInitError

logger = setup_logger(__name__)

# (key, header, column width)
COLUMNS = (
    ("timestamp", "Timestamp", 25),
    ("device_id", "Device ID", 20),
    ("token", "QR Token", 20),
    ("pin", "PIN", 10),
    ("method", "Method", 15),
)


@dataclass(frozen=True, slots=True)
class AttendanceRecord:
    """One row of the attendance ledger."""

    timestamp: str
    device_id: str
    token: str
    pin: str
    method: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def to_row(self) -> list[str]:
        return [getattr(self, key) for key, _, _ in COLUMNS]

    @classmethod
    def from_row(cls, row: tuple) -> "AttendanceRecord":
        values = ["" if value is None else str(value) for value in row]
        values += [""] * (len(COLUMNS) - len(values))
        return cls(*values[: len(COLUMNS)])


class LedgerStore:
    """Append-only attendance table persisted as an ``.xlsx`` workbook.

    The workbook is owned by the store; callers only see
    :class:`AttendanceRecord` values. Appends are serialized and every
    persist replaces the file atomically, so the last successful write
    always holds the full table.

    Args:
        path: Location of the workbook file.
        sheet_name: Worksheet holding the ledger rows.
    """

    def __init__(self, path: str | Path, sheet_name: str = "Attendance") -> None:
        self.path = Path(path)
        self.sheet_name = sheet_name
        self._workbook: Workbook | None = None
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Load the ledger from disk, creating an empty one if absent.

        Raises:
            StorageInitError: If the file cannot be read or created.
        """
        if self.path.exists():
            try:
                workbook = load_workbook(self.path)
            except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
                logger.error("Failed to load ledger %s: %s", self.path, e)
                raise StorageInitError(f"Cannot read ledger {self.path}: {e}") from e
            if self.sheet_name not in workbook.sheetnames:
                raise StorageInitError(
                    f"Ledger {self.path} has no worksheet named {self.sheet_name!r}"
                )
            self._workbook = workbook
            logger.info("Ledger loaded from %s (%d records)", self.path, self.count())
            return

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_name
        sheet.append([header for _, header, _ in COLUMNS])
        for index, (_, _, width) in enumerate(COLUMNS, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width

        try:
            self._save(workbook)
        except OSError as e:
            logger.error("Failed to create ledger %s: %s", self.path, e)
            raise StorageInitError(f"Cannot create ledger {self.path}: {e}") from e
        self._workbook = workbook
        logger.info("Created new ledger at %s", self.path)

    def append(self, record: AttendanceRecord) -> None:
        """Append a record and rewrite the whole workbook.

        Args:
            record: Record to add at the end of the ledger.

        Raises:
            InvalidRecord: If a value contains characters a worksheet cell
                cannot hold. Nothing is appended.
            PersistError: If the workbook cannot be written. The record
                stays in memory; there is no rollback.
        """
        row = record.to_row()
        for (key, _, _), value in zip(COLUMNS, row):
            if ILLEGAL_CHARACTERS_RE.search(value):
                raise InvalidRecord(f"{key} contains control characters: {value!r}")

        with self._lock:
            sheet = self._sheet()
            sheet.append(row)
            try:
                self._save(self._workbook)
            except OSError as e:
                logger.error("Failed to persist ledger %s: %s", self.path, e)
                raise PersistError(f"Cannot write ledger {self.path}: {e}") from e
            logger.debug("Ledger now holds %d records", sheet.max_row - 1)

    def list_all(self) -> list[AttendanceRecord]:
        """Return every record in insertion order, header excluded."""
        with self._lock:
            sheet = self._sheet()
            return [
                AttendanceRecord.from_row(row)
                for row in sheet.iter_rows(min_row=2, max_col=len(COLUMNS), values_only=True)
                if any(value is not None for value in row)
            ]

    def count(self) -> int:
        """Number of records in the ledger."""
        return len(self.list_all())

    def _sheet(self):
        if self._workbook is None:
            raise StorageInitError("Ledger used before initialize()")
        return self._workbook[self.sheet_name]

    def _save(self, workbook: Workbook) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        workbook.save(tmp)
        tmp.replace(self.path)
