import io
import os

import cloudinary.uploader
import pytest
from fastapi import UploadFile

from uploads import UploadError, forward_uploads, save_upload, upload_file


def make_upload(name="photo.jpg", data=b"\xff\xd8jpeg"):
    return UploadFile(file=io.BytesIO(data), filename=name)


def test_save_upload_spools_to_tmp_dir(tmp_path):
    path = save_upload(make_upload(data=b"abc"), str(tmp_path / "spool"))
    assert path.parent == tmp_path / "spool"
    assert path.suffix == ".jpg"
    assert path.read_bytes() == b"abc"


def test_upload_file_returns_url_and_removes_temp(tmp_path, uploaded):
    local = tmp_path / "a.jpg"
    local.write_bytes(b"x")
    url = upload_file(local, folder="rooms")
    assert url.startswith("https://")
    assert uploaded[0]["folder"] == "rooms"
    assert not local.exists()


def test_upload_file_without_url_fails_and_removes_temp(tmp_path, monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "upload", lambda path, **kw: {})
    local = tmp_path / "a.jpg"
    local.write_bytes(b"x")
    with pytest.raises(UploadError):
        upload_file(local)
    assert not local.exists()


def test_upload_file_sdk_error_removes_temp(tmp_path, monkeypatch):
    def boom(path, **kw):
        raise RuntimeError("bad credentials")

    monkeypatch.setattr(cloudinary.uploader, "upload", boom)
    local = tmp_path / "a.jpg"
    local.write_bytes(b"x")
    with pytest.raises(UploadError, match="bad credentials"):
        upload_file(local)
    assert not local.exists()


def test_forward_uploads_keeps_order(tmp_path, uploaded):
    urls = forward_uploads([make_upload("a.png"), make_upload("b.png")], str(tmp_path), "rooms")
    assert urls == [
        "https://res.cloudinary.com/demo/image/upload/1.jpg",
        "https://res.cloudinary.com/demo/image/upload/2.jpg",
    ]
    assert os.listdir(tmp_path) == []
