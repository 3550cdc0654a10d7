"""FastAPI application for the attendance ledger service.

Provides REST endpoints for device attendance ingest, voice sample
uploads, listings of both stores, and health checks.
"""

import secrets
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..storage import AttendanceRecord, LedgerStore, StoreError, VoiceSampleStore
from ..utils.config import get_settings
from ..utils.datetime_utils import now_utc, to_iso
from ..utils.logger import set_log_level, setup_logger
from .schemas import (
    AttendanceEntry,
    DeviceEventBatch,
    DeviceEventResponse,
    EventResult,
    HealthResponse,
    VoiceSampleEntry,
    VoiceUploadResponse,
)

logger = setup_logger(__name__)

_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the stores and mount the frontend bundle."""
    settings = get_settings()
    config = settings.load_config()
    set_log_level(config["logging"]["level"])
    storage_cfg = config["storage"]

    ledger = LedgerStore(storage_cfg["ledger_path"], sheet_name=storage_cfg["sheet_name"])
    ledger.initialize()
    voice_store = VoiceSampleStore(
        storage_cfg["voices_dir"],
        extension=storage_cfg["voice_extension"],
    )
    voice_store.ensure_directory()

    _state["ledger"] = ledger
    _state["voice_store"] = voice_store
    _state["device_api_key"] = settings.device_api_key
    _state["config"] = config

    if not settings.device_api_key:
        logger.warning("No device API key configured; device events will be rejected")

    frontend_dir = Path(config["server"].get("frontend_dir") or "")
    if frontend_dir.is_dir() and not any(
        getattr(route, "name", None) == "frontend" for route in app.routes
    ):
        app.mount("/", StaticFiles(directory=frontend_dir, html=True), name="frontend")
        logger.info("Serving frontend from %s", frontend_dir)

    logger.info("Application started")
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Attendance Ledger API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Map storage failures to JSON error responses."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


def _check_device_key(provided: str | None) -> None:
    """Reject requests whose device key does not match the configured one."""
    expected = _state.get("device_api_key") or ""
    if not expected or not provided or not secrets.compare_digest(provided, expected):
        logger.warning("Rejected device event with invalid key")
        raise HTTPException(status_code=401, detail="invalid key")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health and store status."""
    ledger: LedgerStore = _state["ledger"]
    voice_store: VoiceSampleStore = _state["voice_store"]
    return HealthResponse(
        status="healthy",
        version=__version__,
        ledger_records=ledger.count(),
        voice_dir=str(voice_store.directory),
    )


@app.post("/api/device/event", response_model=DeviceEventResponse)
async def device_event(
    batch: DeviceEventBatch,
    x_device_key: str | None = Header(default=None),
) -> DeviceEventResponse:
    """Record an attendance event reported by a scanning device.

    Only the first event of the batch is written to the ledger.
    """
    _check_device_key(x_device_key)

    event = batch.events[0]
    if len(batch.events) > 1:
        logger.warning(
            "Device %s sent %d events; only the first is recorded",
            batch.device_id,
            len(batch.events),
        )
    logger.info("Attendance event from %s: %s", batch.device_id, event.model_dump())

    record = AttendanceRecord(
        timestamp=to_iso(now_utc()),
        device_id=batch.device_id,
        token=event.token_or_pin,
        pin=(event.extras.entered_pin or "") if event.extras else "",
        method=event.method,
    )
    ledger: LedgerStore = _state["ledger"]
    ledger.append(record)

    return DeviceEventResponse(results=[EventResult(ok=True, message="Attendance saved to Excel")])


async def _save_voice(student_id: str, sample_type: str, audio: UploadFile) -> str:
    """Store an uploaded sample and return its filename."""
    blob = await audio.read()
    voice_store: VoiceSampleStore = _state["voice_store"]
    filename = voice_store.save(student_id, sample_type, blob)
    logger.info("Voice %s for %s: %s", sample_type.upper(), student_id or "unknown", filename)
    return filename


@app.post("/api/voice/enroll", response_model=VoiceUploadResponse)
async def voice_enroll(
    student_id: str = Form(""),
    audio: UploadFile = File(...),  # noqa: B008
) -> VoiceUploadResponse:
    """Store an enrollment voice sample."""
    filename = await _save_voice(student_id, "enroll", audio)
    return VoiceUploadResponse(ok=True, message="Voice enrolled and saved", file=filename)


@app.post("/api/voice/check", response_model=VoiceUploadResponse)
async def voice_check(
    student_id: str = Form(""),
    audio: UploadFile = File(...),  # noqa: B008
) -> VoiceUploadResponse:
    """Store a verification voice sample for later review."""
    filename = await _save_voice(student_id, "check", audio)
    return VoiceUploadResponse(ok=True, message="Voice sample saved for review", file=filename)


@app.get("/api/voices", response_model=list[VoiceSampleEntry])
async def list_voices() -> list[VoiceSampleEntry]:
    """List all stored voice samples."""
    voice_store: VoiceSampleStore = _state["voice_store"]
    return [VoiceSampleEntry(**sample.to_dict()) for sample in voice_store.list_all()]


@app.get("/api/attendance", response_model=list[AttendanceEntry])
async def list_attendance() -> list[AttendanceEntry]:
    """List every attendance record in insertion order."""
    ledger: LedgerStore = _state["ledger"]
    return [AttendanceEntry(**record.to_dict()) for record in ledger.list_all()]


@app.get("/voices/{filename}")
async def get_voice_file(filename: str) -> FileResponse:
    """Serve the raw audio of a stored voice sample."""
    voice_store: VoiceSampleStore = _state["voice_store"]
    return FileResponse(voice_store.resolve(filename), media_type="audio/webm")
