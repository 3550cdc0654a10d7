"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field


class EventExtras(BaseModel):
    """Optional extra data captured with a device event."""

    model_config = {"coerce_numbers_to_str": True}

    entered_pin: str | None = None


class DeviceEvent(BaseModel):
    """Single scan or PIN entry reported by a device."""

    model_config = {"coerce_numbers_to_str": True}

    token_or_pin: str
    method: str
    extras: EventExtras | None = None


class DeviceEventBatch(BaseModel):
    """Batch of events posted by a scanning device."""

    model_config = {"coerce_numbers_to_str": True}

    device_id: str
    events: list[DeviceEvent] = Field(min_length=1)


class EventResult(BaseModel):
    """Outcome of processing one device event."""

    ok: bool
    message: str


class DeviceEventResponse(BaseModel):
    """Response for a device event batch."""

    results: list[EventResult]


class VoiceUploadResponse(BaseModel):
    """Response for voice enrollment and check uploads."""

    ok: bool
    message: str
    file: str


class VoiceSampleEntry(BaseModel):
    """Stored voice sample listing entry."""

    student_id: str
    type: str
    filename: str
    url: str
    timestamp: str | None = None


class AttendanceEntry(BaseModel):
    """Single attendance ledger row."""

    timestamp: str
    device_id: str
    token: str
    pin: str
    method: str


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    ledger_records: int
    voice_dir: str
