"""Data models shared by the processor, the state controller and the web app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel


class InputMode(str, Enum):
    VIDEO = "VIDEO"
    TEXT = "TEXT"


class ProcessingStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessingState:
    status: ProcessingStatus = ProcessingStatus.IDLE
    message: Optional[str] = None


@dataclass(frozen=True)
class SelectedFile:
    name: str
    size: int
    mime_type: str
    data: bytes

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)


@dataclass(frozen=True)
class TranscriptionResult:
    original: str
    indonesian: str
    raw: str
    original_language: str = ""
    summary: str = ""


@dataclass(frozen=True)
class VideoInput:
    encoded_bytes: str
    mime_type: str


@dataclass(frozen=True)
class TextInput:
    content: str


ContentInput = Union[VideoInput, TextInput]


@dataclass(frozen=True)
class ProcessSuccess:
    result: TranscriptionResult


@dataclass(frozen=True)
class ProcessFailure:
    code: str
    message: str


ProcessOutcome = Union[ProcessSuccess, ProcessFailure]


class TranscriptionPayload(BaseModel):
    """The JSON object the model is instructed to return."""

    originalLanguage: str
    originalContent: str
    indonesianTranslation: str
    summary: str


# API schemas


class ModeRequest(BaseModel):
    mode: InputMode


class TextRequest(BaseModel):
    text: str


class FileView(BaseModel):
    name: str
    size: int
    mime_type: str


class ResultView(BaseModel):
    original: str
    indonesian: str
    raw: str
    original_language: str
    summary: str


class StateView(BaseModel):
    mode: InputMode
    status: ProcessingStatus
    message: Optional[str] = None
    file: Optional[FileView] = None
    text: str = ""
    can_submit: bool = False
    result: Optional[ResultView] = None
