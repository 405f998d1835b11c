import json

import httpx
import pytest

from conftest import GEMINI_OK, RecordingTransport, gemini_body
from config import Settings
from errors import AUTH_FAILED, EMPTY_RESPONSE, NETWORK_ERROR, PROTOCOL_ERROR, REMOTE_ERROR
from models import ProcessFailure, ProcessSuccess, TextInput, VideoInput
from processor import (
    RESPONSE_SCHEMA,
    SYSTEM_INSTRUCTION,
    VIDEO_PROMPT,
    ProcessingError,
    build_payload,
    parse_result,
    process,
)


# ---------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------

def test_text_payload_is_single_part_embedding_content() -> None:
    payload = build_payload(TextInput(content="Hello world"))

    parts = payload["contents"][0]["parts"]
    assert len(parts) == 1
    assert parts[0]["text"].endswith("\n\nHello world")
    assert "YouTube transcript" in parts[0]["text"]
    assert payload["systemInstruction"]["parts"][0]["text"] == SYSTEM_INSTRUCTION


def test_video_payload_has_inline_data_then_instruction() -> None:
    payload = build_payload(VideoInput(encoded_bytes="AAAA", mime_type="video/webm"))

    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"inlineData": {"mimeType": "video/webm", "data": "AAAA"}}
    assert parts[1] == {"text": VIDEO_PROMPT}


def test_video_payload_defaults_mime_type() -> None:
    payload = build_payload(VideoInput(encoded_bytes="AAAA", mime_type=""))
    assert payload["contents"][0]["parts"][0]["inlineData"]["mimeType"] == "video/mp4"


def test_payload_declares_json_schema() -> None:
    config = build_payload(TextInput(content="x"))["generationConfig"]

    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] is RESPONSE_SCHEMA
    assert set(RESPONSE_SCHEMA["required"]) == {
        "originalLanguage",
        "originalContent",
        "indonesianTranslation",
        "summary",
    }
    for prop in RESPONSE_SCHEMA["properties"].values():
        assert prop["type"] == "STRING"


def test_unknown_input_type_is_a_programming_error() -> None:
    with pytest.raises(TypeError):
        build_payload("just a string")  # type: ignore[arg-type]


# ---------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------

def test_parse_result_maps_fields_and_keeps_raw() -> None:
    raw = json.dumps(GEMINI_OK)
    result = parse_result(raw)

    assert result.original == "Hello world"
    assert result.indonesian == "Halo dunia"
    assert result.original_language == "English"
    assert result.summary == "Salam"
    assert result.raw == raw


@pytest.mark.parametrize("missing", list(GEMINI_OK))
def test_parse_result_rejects_missing_field(missing: str) -> None:
    body = {k: v for k, v in GEMINI_OK.items() if k != missing}
    with pytest.raises(ProcessingError) as exc:
        parse_result(json.dumps(body))
    assert exc.value.code == PROTOCOL_ERROR


def test_parse_result_rejects_non_string_field() -> None:
    with pytest.raises(ProcessingError):
        parse_result(json.dumps({**GEMINI_OK, "originalContent": 42}))


# ---------------------------------------------------------------
# process()
# ---------------------------------------------------------------

@pytest.mark.asyncio
async def test_process_success(test_settings: Settings, ok_transport: RecordingTransport) -> None:
    async with httpx.AsyncClient(transport=ok_transport) as client:
        outcome = await process(TextInput(content="Hello world"), client=client, settings=test_settings)

    assert isinstance(outcome, ProcessSuccess)
    assert outcome.result.original == GEMINI_OK["originalContent"]
    assert outcome.result.indonesian == GEMINI_OK["indonesianTranslation"]

    request = ok_transport.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.url.params["key"] == "test-key"
    assert "Hello world" in ok_transport.last_payload["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_process_without_api_key_fails_without_request(ok_transport: RecordingTransport) -> None:
    settings = Settings(gemini_api_key="", gemini_base_url="https://gemini.test/v1beta")
    async with httpx.AsyncClient(transport=ok_transport) as client:
        outcome = await process(TextInput(content="hi"), client=client, settings=settings)

    assert isinstance(outcome, ProcessFailure)
    assert outcome.code == AUTH_FAILED
    assert ok_transport.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response, code",
    [
        (httpx.Response(500, text="internal"), REMOTE_ERROR),
        (httpx.Response(401, json={"error": "bad key"}), AUTH_FAILED),
        (httpx.Response(200, text="<html>not json</html>"), PROTOCOL_ERROR),
        (httpx.Response(200, json={"candidates": []}), EMPTY_RESPONSE),
        (httpx.Response(200, json=gemini_body("")), EMPTY_RESPONSE),
        (httpx.Response(200, json=gemini_body("this is not json")), PROTOCOL_ERROR),
        (httpx.Response(200, json=gemini_body({"originalContent": "x"})), PROTOCOL_ERROR),
        (httpx.Response(200, json=gemini_body(["not", "an", "object"])), PROTOCOL_ERROR),
    ],
)
async def test_process_failures_are_returned(test_settings: Settings, response, code: str) -> None:
    transport = RecordingTransport(lambda request: response)
    async with httpx.AsyncClient(transport=transport) as client:
        outcome = await process(TextInput(content="hi"), client=client, settings=test_settings)

    assert isinstance(outcome, ProcessFailure)
    assert outcome.code == code
    # No retry
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_process_network_error(test_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        outcome = await process(
            VideoInput(encoded_bytes="AAAA", mime_type="video/mp4"),
            client=client,
            settings=test_settings,
        )

    assert isinstance(outcome, ProcessFailure)
    assert outcome.code == NETWORK_ERROR
