import cloudinary.uploader
import pytest
from fastapi.testclient import TestClient

import database
import main
from config import Config
from database import JsonStore


@pytest.fixture
def store(tmp_path):
    return JsonStore(str(tmp_path / "posts.json"), str(tmp_path / "roommate-chats.json"))


@pytest.fixture
def uploaded(monkeypatch):
    """Replace the Cloudinary SDK call; records the paths it was given."""
    calls = []

    def fake_upload(path, **options):
        calls.append({"path": path, **options})
        return {"secure_url": f"https://res.cloudinary.com/demo/image/upload/{len(calls)}.jpg"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return calls


@pytest.fixture
def client(store, uploaded, monkeypatch, tmp_path):
    monkeypatch.setattr(database, "db", store)
    monkeypatch.setattr(Config, "TMP_UPLOAD_DIR", str(tmp_path / "tmp_uploads"))
    monkeypatch.setattr(Config, "ADMIN_USERNAME", "owner")
    monkeypatch.setattr(Config, "ADMIN_PASSWORD", "s3cret")
    return TestClient(main.app)
