"""Shared pytest fixtures."""

import asyncio
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from fold.app import App
from fold.config import Config
from fold.core.core import Core
from fold.core.modules.upload.models import FileUpload, StoredFile, StoredFileList
from fold.errors import NotFoundError, UpstreamError
from fold.web.server import create_fastapi_app

TEST_PASSWORD = "correct-horse-battery"  # noqa: S105


class FakeStorage:
    """In-memory stand-in for the Appwrite bucket."""

    def __init__(self) -> None:
        self.files: dict[str, StoredFile] = {}
        self.failing_names: set[str] = set()
        self.deleted: list[str] = []
        self.create_calls = 0

    async def create_file(self, file_id: str, upload: FileUpload) -> StoredFile:
        self.create_calls += 1
        if upload.filename in self.failing_names:
            raise UpstreamError(f"Storage rejected {upload.filename}")
        stored = StoredFile(
            id=file_id,
            name=upload.filename,
            mime_type=upload.mime_type,
            size=upload.size,
            created_at="2025-01-01T00:00:00.000+00:00",
        )
        self.files[file_id] = stored
        return stored

    async def get_file(self, file_id: str) -> StoredFile:
        if file_id not in self.files:
            raise NotFoundError("File not found")
        return self.files[file_id]

    async def delete_file(self, file_id: str) -> None:
        if file_id not in self.files:
            raise NotFoundError("File not found")
        del self.files[file_id]
        self.deleted.append(file_id)

    async def list_files(self, limit: int, offset: int) -> StoredFileList:
        items = list(self.files.values())
        return StoredFileList(files=items[offset : offset + limit], total=len(items))


def make_config(**overrides: object) -> Config:
    settings: dict[str, object] = {
        "database_url": "sqlite+aiosqlite://",
        "session_secret_key": "test-secret-key",
        "password_hash_rounds": 4,
        "appwrite_endpoint": "https://storage.test/v1",
        "appwrite_project_id": "fold-project",
        "appwrite_bucket_id": "fold-bucket",
        "rate_limit_enabled": False,
    }
    settings.update(overrides)
    return Config(_env_file=None, **settings)  # type: ignore[arg-type]


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def app(config: Config, storage: FakeStorage) -> App:
    return App(config, storage_client=storage)


@pytest.fixture
def client(app: App, config: Config) -> Iterator[TestClient]:
    with TestClient(create_fastapi_app(app, config), raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def file_database(tmp_path) -> str:
    """URL of a file-backed SQLite database, where every session gets its own connection."""
    return f"sqlite+aiosqlite:///{tmp_path / 'fold.db'}"


@pytest.fixture
def send_concurrently(client: TestClient) -> Callable[..., list[httpx.Response]]:
    """Send ``(method, path, kwargs)`` requests at the same time on the app's event loop."""

    def _send(requests: list[tuple[str, str, dict[str, Any]]]) -> list[httpx.Response]:
        async def fire() -> list[httpx.Response]:
            transport = httpx.ASGITransport(app=client.app, raise_app_exceptions=False)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                return list(
                    await asyncio.gather(*(http.request(method, path, **kwargs) for method, path, kwargs in requests))
                )

        return client.portal.call(fire)

    return _send


@pytest.fixture
def sign_up(client: TestClient) -> Callable[..., str]:
    """Register a user through the API and return the session token."""

    def _sign_up(email: str = "jane@example.com", password: str = TEST_PASSWORD, name: str = "Jane") -> str:
        response = client.post("/api/auth/sign-up/email", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _sign_up


@pytest.fixture
def auth_headers(sign_up: Callable[..., str], client: TestClient) -> dict[str, str]:
    """Bearer headers for a fresh user; the cookie jar is cleared so only the header authenticates."""
    token = sign_up()
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def run_core(config: Config, storage: FakeStorage) -> Callable[[Callable[[Core], Awaitable[Any]]], Any]:
    """Run ``scenario(core)`` against a started core backed by an in-memory database."""

    def _run(scenario: Callable[[Core], Awaitable[Any]]) -> Any:
        async def main() -> Any:
            core = Core(config, storage_client=storage)
            async with core.lifespan():
                return await scenario(core)

        return asyncio.run(main())

    return _run
