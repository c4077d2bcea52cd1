"""
Unit tests for CloudinaryUploader. The SDK call is monkeypatched; nothing
leaves the process.
"""

from __future__ import annotations

import cloudinary.uploader
import pytest
from cloudinary.exceptions import Error as CloudinaryError

from backend.app.services.media_service import CloudinaryUploader, remove_temp_file


@pytest.fixture
def uploader():
    return CloudinaryUploader(cloud_name="demo", api_key="key", api_secret="secret")


@pytest.fixture
def temp_file(tmp_path):
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG")
    return path


def test_upload_without_path_returns_none(uploader, monkeypatch):
    called = []
    monkeypatch.setattr(cloudinary.uploader, "upload", lambda *a, **kw: called.append(a))

    assert uploader.upload(None) is None
    assert uploader.upload("") is None
    assert called == []


def test_upload_success_returns_secure_url_and_keeps_file(uploader, temp_file, monkeypatch):
    captured = {}

    def fake_upload(path, **options):
        captured.update(options, path=path)
        return {
            "secure_url": "https://res.cloudinary.com/demo/avatar.png",
            "url": "http://res.cloudinary.com/demo/avatar.png",
            "public_id": "avatar",
            "resource_type": "image",
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    result = uploader.upload(str(temp_file))

    assert result.url == "https://res.cloudinary.com/demo/avatar.png"
    assert result.public_id == "avatar"
    assert captured["resource_type"] == "auto"
    assert captured["cloud_name"] == "demo"
    assert temp_file.exists()


def test_upload_sdk_failure_returns_none_and_removes_file(uploader, temp_file, monkeypatch):
    def failing_upload(path, **options):
        raise CloudinaryError("bad credentials")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)

    assert uploader.upload(str(temp_file)) is None
    assert not temp_file.exists()


def test_upload_response_without_url_is_a_failure(uploader, temp_file, monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "upload", lambda path, **kw: {"public_id": "x"})

    assert uploader.upload(str(temp_file)) is None
    assert not temp_file.exists()


def test_remove_temp_file_ignores_missing_path(tmp_path):
    remove_temp_file(str(tmp_path / "never-existed.png"))


def test_from_config_reads_cloudinary_keys():
    built = CloudinaryUploader.from_config({
        "CLOUDINARY_CLOUD_NAME": "c",
        "CLOUDINARY_API_KEY": "k",
        "CLOUDINARY_API_SECRET": "s",
    })
    assert isinstance(built, CloudinaryUploader)
