"""End-to-end tests covering startup, ingest, uploads and restart."""

import re
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from attendance_ledger.api import app as app_module
from attendance_ledger.api.app import _state, app
from attendance_ledger.utils.config import Settings

DEVICE_KEY = "e2e-device-key"


@pytest.fixture
def e2e_config(tmp_path: Path) -> Path:
    """Write a config file pointing all storage into a temp folder."""
    config = {
        "server": {"frontend_dir": str(tmp_path / "no-frontend")},
        "storage": {
            "ledger_path": str(tmp_path / "data" / "attendance.xlsx"),
            "voices_dir": str(tmp_path / "data" / "voices"),
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config))
    return path


@pytest.fixture
def settings(e2e_config: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Point the application at the temporary configuration."""
    settings = Settings(config_path=e2e_config, device_api_key=DEVICE_KEY)
    monkeypatch.setattr(app_module, "get_settings", lambda: settings)
    return settings


def _start_client() -> TestClient:
    """Create a client whose lifespan will run on entry."""
    _state.clear()
    return TestClient(app)


class TestStartup:
    """Tests for application startup."""

    def test_startup_creates_storage(self, settings: Settings, tmp_path: Path) -> None:
        """Test the ledger file and voice folder exist after startup."""
        with _start_client() as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert (tmp_path / "data" / "attendance.xlsx").is_file()
        assert (tmp_path / "data" / "voices").is_dir()


class TestFullWorkflow:
    """Ingest and upload through the API, then restart."""

    def test_ingest_and_list(self, settings: Settings) -> None:
        """Test a scanned QR token shows up in the attendance listing."""
        with _start_client() as client:
            response = client.post(
                "/api/device/event",
                json={"device_id": "D1", "events": [{"token_or_pin": "ABC123", "method": "qr"}]},
                headers={"x-device-key": DEVICE_KEY},
            )
            assert response.json() == {
                "results": [{"ok": True, "message": "Attendance saved to Excel"}]
            }

            rows = client.get("/api/attendance").json()

        assert len(rows) == 1
        row = rows[0]
        assert {k: row[k] for k in ("device_id", "token", "method", "pin")} == {
            "device_id": "D1",
            "token": "ABC123",
            "method": "qr",
            "pin": "",
        }

    def test_enroll_and_list(self, settings: Settings) -> None:
        """Test an enrolled sample appears in the voice listing."""
        with _start_client() as client:
            upload = client.post(
                "/api/voice/enroll",
                data={"student_id": "S42"},
                files={"audio": ("clip.webm", b"sample", "audio/webm")},
            )
            filename = upload.json()["file"]
            voices = client.get("/api/voices").json()

        assert re.fullmatch(r"S42_enroll_\d+\.webm", filename)
        assert len(voices) == 1
        assert voices[0]["student_id"] == "S42"
        assert voices[0]["type"] == "enroll"
        assert voices[0]["filename"] == filename

    def test_records_survive_restart(self, settings: Settings) -> None:
        """Test the ledger reloads every record in order after a restart."""
        tokens = [f"T{n}" for n in range(4)]
        with _start_client() as client:
            for token in tokens:
                client.post(
                    "/api/device/event",
                    json={"device_id": "D2", "events": [{"token_or_pin": token, "method": "qr"}]},
                    headers={"x-device-key": DEVICE_KEY},
                )
            before = client.get("/api/attendance").json()

        with _start_client() as client:
            after = client.get("/api/attendance").json()

        assert [r["token"] for r in after] == tokens
        assert after == before
