import pytest
from fastapi.testclient import TestClient

from notes_chat.config import get_config, reload_config
from notes_chat.storage.notes_store import NotesStore
from notes_chat.utils.jwt_auth import create_access_token


@pytest.fixture(autouse=True)
def env(tmp_path, monkeypatch):
    # isolate data dir per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("APP_BASE_URL", "http://notes.test")
    monkeypatch.setenv("JWT_SECRET", "dev-secret-for-tests")
    monkeypatch.setenv("JWT_EXP_MINUTES", "15")
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    reload_config()
    yield
    get_config.cache_clear()


@pytest.fixture()
def client():
    from notes_chat.main import app

    app.dependency_overrides.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def store(tmp_path):
    return NotesStore(tmp_path)


@pytest.fixture()
def auth():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(subject=user_id)}"}

    return _headers
