"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    points at in-memory SQLite unless TEST_DATABASE_URL is set.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order.
  - The Cloudinary uploader is replaced with StubUploader so no network
    traffic happens; tests can flip `fail_paths` to simulate failures.
  - The client does not keep cookies, so every request carries exactly the
    credentials a test passes in.

Helper functions (not fixtures):
  - register(client, ...)    → sanitized user dict
  - login(client, ...)       → dict with user + tokens
  - auth_headers(token)      → {"Authorization": "Bearer <token>"}
  - set_cookies(resp)        → {name: value} parsed from Set-Cookie headers
"""

from __future__ import annotations

import io
from http.cookies import SimpleCookie

import pytest

from backend.app import create_app
from backend.app.extensions import MEDIA_UPLOADER_KEY
from backend.app.extensions import db as _db
from backend.app.services.media_service import UploadResult


class StubUploader:
    """Records every upload and returns a fake CDN URL."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_all = False

    def upload(self, local_path):
        self.calls.append(local_path)
        if not local_path or self.fail_all:
            return None
        name = local_path.replace("\\", "/").rsplit("/", 1)[-1]
        return UploadResult(url=f"https://cdn.test/{name}", public_id=name)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app(tmp_path_factory):
    flask_app = create_app("testing")
    flask_app.config["UPLOAD_FOLDER"] = str(tmp_path_factory.mktemp("uploads"))

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


@pytest.fixture
def uploader(app):
    stub = StubUploader()
    app.extensions[MEDIA_UPLOADER_KEY] = stub
    return stub


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    yield

    with app.app_context():
        _db.session.rollback()  # discard uncommitted state from a failed test
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(table.delete())
        _db.session.commit()


@pytest.fixture
def client(app, uploader):
    """Cookie-less test client; depends on `uploader` so the stub is always in place."""
    return app.test_client(use_cookies=False)


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def register_response(
    client,
    username: str = "alice",
    email: str | None = None,
    password: str = "Secr3t!",
    full_name: str | None = None,
    avatar: bool = True,
    cover_image: bool = False,
):
    if email is None:
        email = f"{username}@x.com"
    data = {
        "fullName": full_name if full_name is not None else username.title(),
        "email": email,
        "username": username,
        "password": password,
    }
    if avatar:
        data["avatar"] = (io.BytesIO(b"\x89PNG avatar"), "avatar.png")
    if cover_image:
        data["coverImage"] = (io.BytesIO(b"\x89PNG cover"), "cover.png")
    return client.post(
        "/api/v1/auth/register",
        data=data,
        content_type="multipart/form-data",
    )


def register(client, username: str = "alice", **kwargs) -> dict:
    resp = register_response(client, username, **kwargs)
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def login(client, username: str, password: str = "Secr3t!") -> dict:
    resp = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def set_cookies(resp) -> dict[str, SimpleCookie]:
    """Parses every Set-Cookie header into {name: morsel}."""
    morsels = {}
    for header in resp.headers.getlist("Set-Cookie"):
        jar = SimpleCookie()
        jar.load(header)
        morsels.update({name: morsel for name, morsel in jar.items()})
    return morsels
