from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings
from gateway.main import create_app


class FakeProvider:
    """Records every outbound call and answers with a configurable handler."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": "Hi there"}}]}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        self.calls.append(
            {
                "method": request.method,
                "path": request.url.path,
                "headers": dict(request.headers),
                "json": json.loads(body) if body else None,
            }
        )
        return self.handler(request)


class FakeImageSearch:
    def __init__(self, result: Optional[str] = "https://img.example/cat.png") -> None:
        self.result = result
        self.error: Optional[Exception] = None
        self.queries: List[str] = []

    def search(self, query: str) -> Optional[str]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="sk-test",
        provider_base_url="https://provider.test/v1",
        history_file=tmp_path / "history.json",
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def image_search() -> FakeImageSearch:
    return FakeImageSearch()


@pytest.fixture
def client(settings, provider, image_search):
    app = create_app(settings, transport=httpx.MockTransport(provider), image_search=image_search)
    with TestClient(app) as test_client:
        yield test_client
