import pytest

from app.main import app
from app.core.config import settings
from app.core.form_state import FormStateStore, get_form_store
from app.services.avatar_storage import get_avatar_storage
from tests.helpers import FakeAvatarStorage


@pytest.fixture()
def storage():
    return FakeAvatarStorage()


@pytest.fixture()
def form_store():
    return FormStateStore()


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """
    Pin the registration settings so a local .env cannot change test outcomes.
    """
    monkeypatch.setattr(settings, "AVATAR_BUCKET", "form")
    monkeypatch.setattr(settings, "AVATAR_UPLOAD_MODE", "await")
    monkeypatch.setattr(settings, "AVATAR_MAX_BYTES", 5 * 1024 * 1024)
    monkeypatch.setattr(settings, "REQUIRED_EMAIL_DOMAIN", "@gov.pt")


@pytest.fixture(autouse=True)
def override_dependencies(storage, form_store):
    app.dependency_overrides[get_avatar_storage] = lambda: storage
    app.dependency_overrides[get_form_store] = lambda: form_store
    yield
    app.dependency_overrides.clear()
