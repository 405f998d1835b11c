import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from config import Settings

GEMINI_OK = {
    "originalLanguage": "English",
    "originalContent": "Hello world",
    "indonesianTranslation": "Halo dunia",
    "summary": "Salam",
}


def gemini_body(payload: Any) -> Dict[str, Any]:
    """Wrap a model answer the way generateContent returns it."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class RecordingTransport(httpx.MockTransport):
    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last_payload(self) -> Optional[Dict[str, Any]]:
        if not self.requests:
            return None
        return json.loads(self.requests[-1].content)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-2.5-flash",
        gemini_base_url="https://gemini.test/v1beta",
        max_video_mb=1,
        max_text_chars=1000,
    )


@pytest.fixture
def ok_transport() -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, json=gemini_body(GEMINI_OK)))
