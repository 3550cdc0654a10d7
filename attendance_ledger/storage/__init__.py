"""Durable stores for attendance records and voice samples."""

from .errors import (
    InvalidRecord,
    InvalidSampleName,
    PersistError,
    SampleNotFound,
    StorageInitError,
    StoreError,
    WriteError,
)
from .ledger_store import AttendanceRecord, LedgerStore
from .voice_store import VoiceSample, VoiceSampleStore, parse_sample_filename

__all__ = [
    "AttendanceRecord",
    "InvalidRecord",
    "InvalidSampleName",
    "LedgerStore",
    "PersistError",
    "SampleNotFound",
    "StorageInitError",
    "StoreError",
    "VoiceSample",
    "VoiceSampleStore",
    "WriteError",
    "parse_sample_filename",
]
