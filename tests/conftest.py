"""Pytest configuration for session-csrf tests."""

from typing import Any

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from session_csrf import CSRFMiddleware, get_token, refresh_token

# Test constants
TEST_SECRET = "test-csrf-secret"
TEST_SESSION_KEY = "test-session-signing-key"


class FakeSession:
    """Dict-backed SessionAccessor recording saves."""

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        save_result: bool = True,
        save_error: Exception | None = None,
    ) -> None:
        self.data = data or {}
        self.save_result = save_result
        self.save_error = save_error
        self.save_count = 0

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def save(self) -> bool:
        self.save_count += 1
        if self.save_error is not None:
            raise self.save_error
        return self.save_result


def build_app(**csrf_options: Any) -> FastAPI:
    """Build an app with cookie sessions, CSRF middleware and test routes."""
    app = FastAPI()

    @app.get("/token")
    async def token(request: Request) -> dict[str, str]:
        first = get_token(request)
        second = get_token(request)
        return {"token": first, "cached": str(first == second)}

    @app.get("/page")
    async def page() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/submit")
    async def submit(request: Request) -> dict[str, Any]:
        form = await request.form()
        return {"status": "accepted", "fields": sorted(form.keys())}

    @app.post("/json")
    async def json_submit(payload: dict[str, Any]) -> dict[str, Any]:
        return {"status": "accepted", "payload": payload}

    @app.post("/raw")
    async def raw_submit(request: Request) -> dict[str, int]:
        return {"size": len(await request.body())}

    @app.post("/login")
    async def login(request: Request) -> dict[str, str]:
        old, new = refresh_token(request)
        return {"old": old, "new": new}

    @app.post("/login-after-render")
    async def login_after_render(request: Request) -> dict[str, str]:
        rendered = get_token(request)
        old, new = refresh_token(request)
        return {"rendered": rendered, "old": old, "new": new}

    @app.get("/dependency")
    async def dependency(token: str = Depends(get_token)) -> dict[str, str]:
        return {"token": token}

    @app.post("/hooks/github")
    async def webhook() -> dict[str, str]:
        return {"status": "hooked"}

    options: dict[str, Any] = {"secret": TEST_SECRET}
    options.update(csrf_options)
    app.add_middleware(CSRFMiddleware, **options)
    app.add_middleware(SessionMiddleware, secret_key=TEST_SESSION_KEY)
    return app


@pytest.fixture
def app() -> FastAPI:
    """App protected with default CSRF options."""
    return build_app(ignored_paths=["/hooks/"])


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client keeping cookies between requests."""
    return TestClient(app)


@pytest.fixture
def issued_token(client: TestClient) -> str:
    """Token issued to the client session by a GET request."""
    response = client.get("/token")
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def fake_session() -> FakeSession:
    """Empty in-memory session accessor."""
    return FakeSession()


@pytest.fixture
def make_session() -> type[FakeSession]:
    """Factory for sessions with custom contents or save behaviour."""
    return FakeSession
