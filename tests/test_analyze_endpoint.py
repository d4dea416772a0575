from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile

from conftest import FakeAnalysisClient, FakeClock

from resume_backend.app import create_app
from resume_backend.application import AnalysisService, configure_analysis_service, reset_analysis_state
from resume_backend.core.config import Settings
from resume_backend.core.errors import UpstreamPayloadTooLarge
from resume_backend.infrastructure import configure_analysis_client, configure_email_store

PDF_BYTES = b"%PDF-1.4\nBT /F1 12 Tf (Jane Doe, backend engineer with ten years of Python and FastAPI experience) Tj ET"


class RecordingEmailStore:
    def __init__(self) -> None:
        self.stored: list[tuple[str, str | None]] = []
        self.completed: list[str] = []

    def store_email(self, email: str, resume_filename: str | None = None) -> bool:
        self.stored.append((email, resume_filename))
        return True

    def mark_analysis_complete(self, email: str) -> bool:
        self.completed.append(email)
        return True


@pytest.fixture()
def settings() -> Settings:
    return Settings(poll_interval_s=1.0)


@pytest.fixture()
def fake_client() -> FakeAnalysisClient:
    return FakeAnalysisClient(run_statuses=["queued", "completed"])


@pytest.fixture()
def email_store() -> RecordingEmailStore:
    return RecordingEmailStore()


@pytest.fixture()
def api(settings, fake_client, email_store, fake_clock):
    app = create_app(settings)
    configure_analysis_client(fake_client)
    configure_email_store(email_store)
    configure_analysis_service(AnalysisService(settings, clock=fake_clock, sleep=fake_clock.sleep))
    with TestClient(app) as client:
        yield client
    reset_analysis_state()


def _upload(
    client: TestClient,
    data: bytes = PDF_BYTES,
    filename: str = "resume.pdf",
    content_type: str = "application/pdf",
    **form,
):
    files = {"file": (filename, data, content_type)}
    return client.post("/analyze", files=files, data=form)


def test_successful_analysis_returns_envelope(api, fake_client):
    response = _upload(api)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Resume analyzed successfully"
    assert body["data"]["overall"]["score_0_to_100"] == 72
    assert body["data"]["overall"]["label"] == "High Performance"
    assert body["data"]["breakdown"]["ghosted_risk_subscore_0_to_10"] is None
    assert response.headers["X-RateLimit-Remaining"] == "4"
    assert fake_client.uploads == [("resume.pdf", len(PDF_BYTES), "application/pdf")]
    assert fake_client.deleted_files == ["file-abc"]


def test_empty_file_is_rejected_before_any_remote_call(api, fake_client):
    response = _upload(api, data=b"")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "File cannot be empty"}
    assert fake_client.calls == []


def test_wrong_format_and_size_are_reported_together(api, fake_client):
    response = _upload(api, data=b"x" * (5 * 1024 * 1024 + 1), filename="resume.txt", content_type="text/plain")

    assert response.status_code == 400
    assert response.json()["error"] == "File must be PDF, DOC, or DOCX format, File size must be less than 5MB"
    assert fake_client.calls == []


def test_sixth_request_in_window_is_denied(api):
    statuses = [_upload(api, data=b"").status_code for _ in range(5)]
    denied = _upload(api)

    assert statuses == [400] * 5
    assert denied.status_code == 429
    assert denied.json()["success"] is False
    assert denied.headers["X-RateLimit-Remaining"] == "0"
    assert denied.headers["X-RateLimit-Reset"].endswith("Z")


def test_forwarded_clients_are_limited_separately(api):
    for _ in range(5):
        api.post("/analyze", headers={"x-forwarded-for": "10.0.0.1, 172.16.0.1"}, files={"file": ("a.pdf", b"")})

    blocked = api.post("/analyze", headers={"x-forwarded-for": "10.0.0.1"}, files={"file": ("a.pdf", b"")})
    other = api.post("/analyze", headers={"x-forwarded-for": "10.0.0.2"}, files={"file": ("a.pdf", b"")})

    assert blocked.status_code == 429
    assert other.status_code == 400


def test_non_multipart_request_is_rejected(api, fake_client):
    response = api.post("/analyze", json={"file": "resume.pdf"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert fake_client.calls == []


def test_missing_file_field_is_rejected(api):
    response = api.post("/analyze", files={"attachment": ("resume.pdf", PDF_BYTES, "application/pdf")})

    assert response.status_code == 400
    assert response.json()["error"] == "No file provided"


def test_oversized_upload_falls_back_to_text(api, fake_client):
    fake_client.upload_error = UpstreamPayloadTooLarge("413")

    response = _upload(api)

    assert response.status_code == 200
    content, file_id = fake_client.threads[0]
    assert file_id is None
    assert "Jane Doe, backend engineer" in content
    assert fake_client.deleted_files == []


def test_too_little_fallback_text_is_a_client_error(api, fake_client):
    fake_client.upload_error = UpstreamPayloadTooLarge("413")

    response = _upload(api, data=b"%PDF-1.4 " + b"a" * 21)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert fake_client.calls == ["upload_file"]


def test_stuck_analysis_times_out_with_cleanup(api, fake_client, fake_clock):
    fake_client.run_statuses = ["in_progress"]

    response = _upload(api)

    assert response.status_code == 503
    assert "sk-" not in response.json()["error"]
    assert fake_clock.now == pytest.approx(120.0)
    assert fake_client.deleted_files == ["file-abc"]


def test_unconfigured_service_is_unavailable(settings):
    app = create_app(settings)
    try:
        with TestClient(app) as client:
            response = _upload(client)
            health = client.get("/health").json()
    finally:
        reset_analysis_state()

    assert response.status_code == 503
    assert response.json()["success"] is False
    assert health["analysis_configured"] is False


def test_valid_email_is_stored_and_marked_complete(api, email_store):
    response = _upload(api, email=" jane@example.com ")

    assert response.status_code == 200
    assert email_store.stored == [("jane@example.com", "resume.pdf")]
    assert email_store.completed == ["jane@example.com"]


def test_invalid_email_is_ignored(api, email_store):
    response = _upload(api, email="not-an-email")

    assert response.status_code == 200
    assert email_store.stored == []
    assert email_store.completed == []


def test_email_is_stored_even_when_analysis_fails(api, fake_client, email_store):
    fake_client.run_statuses = ["failed"]

    response = _upload(api, email="jane@example.com")

    assert response.status_code == 500
    assert email_store.stored == [("jane@example.com", "resume.pdf")]
    assert email_store.completed == []


def test_health_reports_configuration(api):
    body = api.get("/health").json()

    assert body["status"] == "ok"
    assert body["analysis_configured"] is True
    assert body["email_storage_configured"] is True
    assert body["limits"]["max_upload_bytes"] == 5 * 1024 * 1024


@pytest.fixture()
def read_sizes(monkeypatch) -> list[int]:
    sizes: list[int] = []
    original = UploadFile.read

    async def recording_read(self, size: int = -1) -> bytes:
        sizes.append(size)
        return await original(self, size)

    monkeypatch.setattr(UploadFile, "read", recording_read)
    return sizes


def test_upload_read_is_capped_at_the_limit(api, read_sizes):
    response = _upload(api)

    assert response.status_code == 200
    assert read_sizes == [5 * 1024 * 1024 + 1]


def test_oversized_file_is_rejected_without_reading_it(api, fake_client, read_sizes):
    response = _upload(api, data=b"%PDF-1.4 " + b"x" * (5 * 1024 * 1024))

    assert response.status_code == 400
    assert response.json()["error"] == "File size must be less than 5MB"
    assert read_sizes == []
    assert fake_client.calls == []


def test_oversized_body_is_rejected_before_form_parsing(api, fake_client, read_sizes):
    response = _upload(api, data=b"x" * (6 * 1024 * 1024), filename="notes.txt", content_type="text/plain")

    assert response.status_code == 400
    # Only the size is known at this point, so the format is not reported.
    assert response.json()["error"] == "File size must be less than 5MB"
    assert read_sizes == []
    assert fake_client.calls == []
