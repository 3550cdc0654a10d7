"""Directory-backed store for uploaded voice samples.

Each sample is a single audio file named
``{student_id}_{type}_{epoch_millis}{extension}``. The filename is the
only record of a sample's metadata; listing parses it back.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..utils.datetime_utils import epoch_millis, from_epoch_millis, now_utc, to_iso
from ..utils.logger import setup_logger
from .errors import InvalidSampleName, SampleNotFound, WriteError

logger = setup_logger(__name__)

DEFAULT_EXTENSION = ".webm"
UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class VoiceSample:
    """Metadata recovered from a stored sample's filename."""

    student_id: str
    type: str
    filename: str
    created_at: datetime | None = None

    @property
    def url(self) -> str:
        return f"/voices/{self.filename}"

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "type": self.type,
            "filename": self.filename,
            "url": self.url,
            "timestamp": to_iso(self.created_at) if self.created_at else None,
        }


def parse_sample_filename(filename: str, extension: str = DEFAULT_EXTENSION) -> VoiceSample:
    """Recover sample metadata from a filename.

    Missing segments fall back to ``"unknown"``; a timestamp segment that
    is not a usable millisecond epoch yields ``created_at=None``.

    Args:
        filename: Base name of the stored file.
        extension: Extension stripped before splitting.

    Returns:
        VoiceSample descriptor.
    """
    stem = filename[: -len(extension)] if filename.endswith(extension) else filename
    parts = stem.split("_")
    student_id = parts[0] or UNKNOWN
    sample_type = parts[1] if len(parts) > 1 and parts[1] else UNKNOWN

    created_at = None
    if len(parts) > 2 and parts[2]:
        try:
            created_at = from_epoch_millis(int(parts[2]))
        except (ValueError, OverflowError, OSError):
            created_at = None

    return VoiceSample(student_id, sample_type, filename, created_at)


def _is_utf8(name: str) -> bool:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _check_segment(value: str, field: str) -> None:
    if value in (".", "..") or "/" in value or "\\" in value or "\x00" in value:
        raise InvalidSampleName(f"Invalid {field}: {value!r}")


class VoiceSampleStore:
    """Stores audio blobs under a single directory.

    Args:
        directory: Folder holding the sample files.
        extension: File extension given to every sample.
    """

    def __init__(self, directory: str | Path, extension: str = DEFAULT_EXTENSION) -> None:
        self.directory = Path(directory)
        self.extension = extension

    def ensure_directory(self) -> Path:
        """Create the storage directory if it does not exist."""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def save(self, student_id: str, sample_type: str, blob: bytes) -> str:
        """Write a sample and return its generated filename.

        Args:
            student_id: Owner of the sample; ``"unknown"`` when empty.
            sample_type: Sample tag such as ``"enroll"``; ``"check"`` when empty.
            blob: Raw audio bytes.

        Returns:
            Name of the written file.

        Raises:
            InvalidSampleName: If a field would escape the directory.
            WriteError: If the file cannot be written.
        """
        student_id = student_id or UNKNOWN
        sample_type = sample_type or "check"
        _check_segment(student_id, "student_id")
        _check_segment(sample_type, "type")

        filename = f"{student_id}_{sample_type}_{epoch_millis(now_utc())}{self.extension}"
        try:
            self.ensure_directory()
            (self.directory / filename).write_bytes(blob)
        except OSError as e:
            logger.error("Failed to write voice sample %s: %s", filename, e)
            raise WriteError(f"Cannot write voice sample {filename}: {e}") from e

        logger.info("Stored voice sample %s (%d bytes)", filename, len(blob))
        return filename

    def list_all(self) -> list[VoiceSample]:
        """Describe every stored sample, in directory enumeration order.

        Files whose names are not valid UTF-8 are skipped.
        """
        if not self.directory.is_dir():
            return []
        samples = []
        for path in self.directory.iterdir():
            if not path.name.endswith(self.extension) or not path.is_file():
                continue
            if not _is_utf8(path.name):
                logger.warning("Skipping voice sample with undecodable name: %r", path.name)
                continue
            samples.append(parse_sample_filename(path.name, self.extension))
        return samples

    def resolve(self, filename: str) -> Path:
        """Return the path of a stored sample.

        Raises:
            SampleNotFound: If no such sample exists in the directory.
        """
        path = self.directory / filename
        if (
            Path(filename).name != filename
            or not filename.endswith(self.extension)
            or not path.is_file()
        ):
            raise SampleNotFound(f"Voice sample not found: {filename}")
        return path
