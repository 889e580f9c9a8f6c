import json

import httpx
import pytest
from fastapi.testclient import TestClient

from validation_gateway.bootstrap import build_gateway
from validation_gateway.config.settings import clear_settings_cache, get_settings
from validation_gateway.main import create_app

VIDEO_SERVICE_URL = "https://video.example.local/generate"


def _video_service(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content.decode("utf-8"))
    return httpx.Response(
        status_code=200,
        json={
            "success": True,
            "message": "Video generated successfully",
            "data": {"prompt": body.get("prompt"), "status": "completed"},
            "authorization": request.headers.get("authorization"),
        },
    )


@pytest.fixture
def gateway_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PVG_MODERATION_BACKEND", "keyword")
    monkeypatch.setenv("PVG_MODERATION_BLOCKED_TERMS", "violence,gore")
    monkeypatch.setenv("PVG_GUARDRAIL_ID", "gr-test")
    monkeypatch.setenv("PVG_GUARDRAIL_VERSION", "1")
    monkeypatch.setenv("PVG_VIDEO_SERVICE_URL", VIDEO_SERVICE_URL)
    clear_settings_cache()


@pytest.fixture
def video_transport() -> httpx.MockTransport:
    return httpx.MockTransport(_video_service)


@pytest.fixture
def client(gateway_env: None, video_transport: httpx.MockTransport) -> TestClient:
    app = create_app()
    app.state.gateway = build_gateway(get_settings(), forward_transport=video_transport)
    return TestClient(app)
