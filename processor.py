"""Gemini request construction and response parsing."""

import json
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from config import Settings, get_settings
from errors import (
    AUTH_FAILED,
    EMPTY_RESPONSE,
    ERROR_MESSAGES,
    NETWORK_ERROR,
    PROTOCOL_ERROR,
    REMOTE_ERROR,
)
from logging_utils import get_logger
from models import (
    ContentInput,
    ProcessFailure,
    ProcessOutcome,
    ProcessSuccess,
    TextInput,
    TranscriptionPayload,
    TranscriptionResult,
    VideoInput,
)

logger = get_logger(__name__)

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"

SYSTEM_INSTRUCTION = """
You are an expert transcriber and translator.
Your task is to process the provided input (video or text) and produce a structured document.
1. Transcribe or process the original content exactly as it appears (Original Language).
2. Translate the content into fluent, natural-sounding Indonesian.
3. Return the result in a structured JSON format containing both the original text and the Indonesian translation.
"""

VIDEO_PROMPT = "Transcribe this video and provide an Indonesian translation."
TEXT_PROMPT_TEMPLATE = (
    "Process the following text (which may be a YouTube transcript or similar): \n\n{content}"
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "originalLanguage": {
            "type": "STRING",
            "description": "The name of the original language detected.",
        },
        "originalContent": {
            "type": "STRING",
            "description": "The full transcription or content in the original language.",
        },
        "indonesianTranslation": {
            "type": "STRING",
            "description": "The full translation in Indonesian.",
        },
        "summary": {
            "type": "STRING",
            "description": "A brief summary of the content in Indonesian.",
        },
    },
    "required": ["originalLanguage", "originalContent", "indonesianTranslation", "summary"],
}


class ProcessingError(Exception):
    def __init__(self, code: str, detail: str = "") -> None:
        super().__init__(detail or ERROR_MESSAGES.get(code, code))
        self.code = code


def build_parts(content: ContentInput) -> List[Dict[str, Any]]:
    if isinstance(content, VideoInput):
        return [
            {
                "inlineData": {
                    "mimeType": content.mime_type or DEFAULT_VIDEO_MIME_TYPE,
                    "data": content.encoded_bytes,
                }
            },
            {"text": VIDEO_PROMPT},
        ]
    if isinstance(content, TextInput):
        return [{"text": TEXT_PROMPT_TEMPLATE.format(content=content.content)}]
    raise TypeError(f"Unsupported input type: {type(content).__name__}")


def build_payload(content: ContentInput) -> Dict[str, Any]:
    return {
        "contents": [{"parts": build_parts(content)}],
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


def extract_text(body: Dict[str, Any]) -> str:
    """Pull the generated JSON text out of a generateContent response body."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise ProcessingError(EMPTY_RESPONSE)
    if not isinstance(text, str) or not text.strip():
        raise ProcessingError(EMPTY_RESPONSE)
    return text


def parse_result(json_text: str) -> TranscriptionResult:
    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise ProcessingError(PROTOCOL_ERROR, f"Response is not JSON: {e}")
    if not isinstance(parsed, dict):
        raise ProcessingError(PROTOCOL_ERROR, "Response JSON is not an object")
    try:
        payload = TranscriptionPayload.model_validate(parsed)
    except ValidationError as e:
        raise ProcessingError(PROTOCOL_ERROR, f"Response violates schema: {e}")

    return TranscriptionResult(
        original=payload.originalContent,
        indonesian=payload.indonesianTranslation,
        raw=json_text,
        original_language=payload.originalLanguage,
        summary=payload.summary,
    )


async def _call_gemini(
    client: httpx.AsyncClient, settings: Settings, payload: Dict[str, Any]
) -> Dict[str, Any]:
    try:
        response = await client.post(
            settings.generate_url,
            params={"key": settings.gemini_api_key},
            json=payload,
        )
    except httpx.HTTPError as e:
        raise ProcessingError(NETWORK_ERROR, str(e))

    if response.status_code in (401, 403):
        raise ProcessingError(AUTH_FAILED, f"HTTP {response.status_code}")
    if response.status_code != 200:
        raise ProcessingError(REMOTE_ERROR, f"HTTP {response.status_code}: {response.text[:200]}")

    try:
        body = response.json()
    except ValueError as e:
        raise ProcessingError(PROTOCOL_ERROR, f"Response body is not JSON: {e}")
    if not isinstance(body, dict):
        raise ProcessingError(PROTOCOL_ERROR, "Response body is not a JSON object")
    return body


async def process(
    content: ContentInput,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> ProcessOutcome:
    """Run one generateContent call and normalise its answer.

    Never raises for remote problems: every failure comes back as a
    ``ProcessFailure`` so the caller has to handle both outcomes. There is
    no retry.
    """
    settings = settings or get_settings()
    kind = "video" if isinstance(content, VideoInput) else "text"

    try:
        payload = build_payload(content)
        if not settings.gemini_api_key:
            raise ProcessingError(AUTH_FAILED, "GEMINI_API_KEY is not set")

        logger.info("Sending %s input to %s", kind, settings.gemini_model)
        if client is not None:
            body = await _call_gemini(client, settings, payload)
        else:
            async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as own_client:
                body = await _call_gemini(own_client, settings, payload)

        result = parse_result(extract_text(body))
    except ProcessingError as e:
        logger.error("Gemini API error (%s): %s", e.code, e)
        return ProcessFailure(code=e.code, message=str(e))

    logger.info(
        "Gemini processed %s input (language=%s, %d chars)",
        kind,
        result.original_language,
        len(result.original),
    )
    return ProcessSuccess(result=result)
