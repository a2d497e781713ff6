import httpx
import pytest
from fastapi.testclient import TestClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Each test starts in mock mode with no sessions and analytics disabled."""
    import config
    import main

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(config, "GA_MEASUREMENT_ID", "")
    monkeypatch.setattr(config, "GA_API_SECRET", "")
    main.sessions.clear()
    yield
    main.sessions.clear()


@pytest.fixture
def client():
    from main import app

    return TestClient(app)


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient through a MockTransport.

    Call the returned function with a handler(request) -> httpx.Response;
    the list of captured requests is returned.
    """

    def install(handler):
        captured = []
        real_client = httpx.AsyncClient

        def recording_handler(request):
            captured.append(request)
            return handler(request)

        def factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(recording_handler)
            return real_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        return captured

    return install
