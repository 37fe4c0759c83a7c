import json
import logging

from fastapi.testclient import TestClient

from app.main import app
from app.core.config import settings
from app.services.avatar_storage import get_avatar_storage
from tests.helpers import FailingAvatarStorage, avatar_upload, registration_form_data


def test_register_success_uploads_and_renders(storage):
    """Valid submit uploads the avatar under its file name in the form bucket"""
    client = TestClient(app)
    r = client.post("/registrations", data=registration_form_data(), files=avatar_upload())
    assert r.status_code == 201, r.text

    body = r.json()
    assert body["record"] == {
        "avatar": {"name": "pic.png", "size": 2048, "content_type": "image/png"},
        "name": "Maria Silva",
        "email": "maria@gov.pt",
        "password": "secret1",
        "confirmPassword": "secret1",
        "skills": [{"name": "go", "level": 3}, {"name": "sql", "level": 4}],
    }
    assert body["upload"] == {"bucket": "form", "key": "pic.png", "mode": "await"}

    # output is the same record as indented JSON
    assert json.loads(body["output"]) == body["record"]
    assert body["output"].startswith("{\n  ")

    assert len(storage.uploads) == 1
    upload = storage.uploads[0]
    assert upload["bucket"] == "form"
    assert upload["key"] == "pic.png"
    assert len(upload["payload"]) == 2048
    assert upload["content_type"] == "image/png"


def test_register_password_mismatch_blocks_upload(storage):
    client = TestClient(app)
    r = client.post(
        "/registrations",
        data=registration_form_data(confirmPassword="secret2"),
        files=avatar_upload(),
    )
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["message"] == "Registration validation failed"
    assert detail["errors"] == [
        {
            "field": "confirmPassword",
            "path": ["confirmPassword"],
            "code": "mismatch",
            "message": "The passwords did not match",
        }
    ]
    assert storage.uploads == []


def test_register_collects_errors_from_every_field(storage):
    client = TestClient(app)
    r = client.post(
        "/registrations",
        data=registration_form_data(
            email="user@other.pt",
            password="123",
            confirmPassword="123",
            skill_name=["go"],
            skill_level=["9"],
        ),
    )
    assert r.status_code == 422
    fields = [e["field"] for e in r.json()["detail"]["errors"]]
    assert fields == ["avatar", "email", "password", "confirmPassword", "skills.0.level", "skills"]
    assert storage.uploads == []


def test_register_avatar_too_large(storage, monkeypatch):
    monkeypatch.setattr(settings, "AVATAR_MAX_BYTES", 1024 * 1024)
    client = TestClient(app)
    r = client.post("/registrations", data=registration_form_data(), files=avatar_upload(size=1024 * 1024))
    assert r.status_code == 422
    assert r.json()["detail"]["errors"][0]["message"] == "File size must be less than 1MB"


def test_register_missing_skill_level_is_flagged():
    client = TestClient(app)
    r = client.post(
        "/registrations",
        data=registration_form_data(skill_name=["go", "sql"], skill_level=["3"]),
        files=avatar_upload(),
    )
    assert r.status_code == 422
    errors = r.json()["detail"]["errors"]
    assert [(e["field"], e["code"]) for e in errors] == [("skills.1.level", "min")]


def test_register_upload_failure_is_surfaced():
    """When the upload is awaited a failure is reported and no record is shown"""
    failing = FailingAvatarStorage()
    app.dependency_overrides[get_avatar_storage] = lambda: failing

    client = TestClient(app)
    r = client.post("/registrations", data=registration_form_data(), files=avatar_upload())
    assert r.status_code == 502
    assert r.json()["detail"] == {"message": "Avatar upload failed", "bucket": "form", "key": "pic.png"}
    assert failing.attempts == 1


def test_register_background_upload(storage, monkeypatch):
    monkeypatch.setattr(settings, "AVATAR_UPLOAD_MODE", "background")
    client = TestClient(app)
    r = client.post("/registrations", data=registration_form_data(), files=avatar_upload())
    assert r.status_code == 201
    assert r.json()["upload"]["mode"] == "background"
    # TestClient runs background tasks before returning
    assert [u["key"] for u in storage.uploads] == ["pic.png"]


def test_register_background_upload_failure_is_logged(monkeypatch, caplog):
    monkeypatch.setattr(settings, "AVATAR_UPLOAD_MODE", "background")
    failing = FailingAvatarStorage()
    app.dependency_overrides[get_avatar_storage] = lambda: failing

    client = TestClient(app)
    with caplog.at_level(logging.ERROR, logger="app.services.registration_submission"):
        r = client.post("/registrations", data=registration_form_data(), files=avatar_upload())

    assert r.status_code == 201
    assert failing.attempts == 1
    assert "Background avatar upload failed for pic.png" in caplog.text


def test_register_uses_configured_bucket(storage, monkeypatch):
    monkeypatch.setattr(settings, "AVATAR_BUCKET", "avatars")
    client = TestClient(app)
    r = client.post("/registrations", data=registration_form_data(), files=avatar_upload(filename="me.jpg"))
    assert r.status_code == 201
    assert storage.uploads[0]["bucket"] == "avatars"
    assert storage.uploads[0]["key"] == "me.jpg"


def test_validate_preview_never_uploads(storage):
    client = TestClient(app)
    r = client.post("/registrations/validate", data=registration_form_data(), files=avatar_upload())
    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is True
    assert body["errors"] == []
    assert body["record"]["name"] == "Maria Silva"
    assert storage.uploads == []


def test_validate_preview_reports_errors():
    client = TestClient(app)
    r = client.post("/registrations/validate", data=registration_form_data(email="Maria@GOV.PT", name=""))
    body = r.json()
    assert body["valid"] is False
    assert body["record"] is None
    assert {e["field"] for e in body["errors"]} == {"avatar", "name"}
