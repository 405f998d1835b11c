"""Form and result state for one browser session.

``AppState`` is immutable. Every user action is a plain function that takes
the current state and returns the next one, so the whole lifecycle
(idle -> processing -> success/error -> idle) can be driven without a browser.
``submit`` is the only coroutine: it commits ``processing`` before awaiting
the model call, and commits the outcome only if the submission it started is
still the current one.
"""

from __future__ import annotations

import itertools
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Tuple

from encoder import encode
from errors import ERROR_MESSAGES, PROCESSING_FAILED_MESSAGE, UNEXPECTED_ERROR
from logging_utils import get_logger
from models import (
    ContentInput,
    FileView,
    InputMode,
    ProcessFailure,
    ProcessOutcome,
    ProcessingState,
    ProcessingStatus,
    ResultView,
    SelectedFile,
    StateView,
    TextInput,
    TranscriptionResult,
    VideoInput,
)

logger = get_logger(__name__)

Processor = Callable[[ContentInput], Awaitable[ProcessOutcome]]

_submission_ids = itertools.count(1)


@dataclass(frozen=True)
class AppState:
    mode: InputMode = InputMode.VIDEO
    selected_file: Optional[SelectedFile] = None
    text_input: str = ""
    processing: ProcessingState = ProcessingState()
    result: Optional[TranscriptionResult] = None
    submission_id: int = 0

    @property
    def status(self) -> ProcessingStatus:
        return self.processing.status


def select_mode(state: AppState, mode: InputMode) -> AppState:
    # Switching tabs always starts from a blank form
    return AppState(mode=mode, submission_id=state.submission_id)


def select_file(state: AppState, selected: SelectedFile) -> AppState:
    if state.mode != InputMode.VIDEO or state.status == ProcessingStatus.PROCESSING:
        return state
    return replace(state, selected_file=selected, result=None, processing=ProcessingState())


def set_text(state: AppState, text: str) -> AppState:
    if state.mode != InputMode.TEXT or state.status == ProcessingStatus.PROCESSING:
        return state
    return replace(state, text_input=text)


def clear(state: AppState) -> AppState:
    return AppState(mode=state.mode, submission_id=state.submission_id)


def can_submit(state: AppState) -> bool:
    if state.status == ProcessingStatus.PROCESSING:
        return False
    if state.mode == InputMode.VIDEO:
        return state.selected_file is not None and state.selected_file.size > 0
    if state.mode == InputMode.TEXT:
        return len(state.text_input.strip()) > 0
    return False


def begin_submission(state: AppState) -> AppState:
    return replace(
        state,
        processing=ProcessingState(ProcessingStatus.PROCESSING),
        result=None,
        submission_id=next(_submission_ids),
    )


def commit_success(state: AppState, submission_id: int, result: TranscriptionResult) -> AppState:
    if not _is_current(state, submission_id):
        return state
    return replace(state, processing=ProcessingState(ProcessingStatus.SUCCESS), result=result)


def commit_failure(state: AppState, submission_id: int, message: str) -> AppState:
    if not _is_current(state, submission_id):
        return state
    return replace(
        state,
        processing=ProcessingState(ProcessingStatus.ERROR, message),
        result=None,
    )


def _is_current(state: AppState, submission_id: int) -> bool:
    return state.submission_id == submission_id and state.status == ProcessingStatus.PROCESSING


def build_input(state: AppState) -> ContentInput:
    if state.mode == InputMode.VIDEO and state.selected_file is not None:
        return VideoInput(
            encoded_bytes=encode(state.selected_file.data),
            mime_type=state.selected_file.mime_type,
        )
    return TextInput(content=state.text_input)


def to_view(state: AppState) -> StateView:
    file_view = None
    if state.selected_file is not None:
        file_view = FileView(
            name=state.selected_file.name,
            size=state.selected_file.size,
            mime_type=state.selected_file.mime_type,
        )
    result_view = None
    if state.result is not None:
        result_view = ResultView(
            original=state.result.original,
            indonesian=state.result.indonesian,
            raw=state.result.raw,
            original_language=state.result.original_language,
            summary=state.result.summary,
        )
    return StateView(
        mode=state.mode,
        status=state.status,
        message=state.processing.message,
        file=file_view,
        text=state.text_input,
        can_submit=can_submit(state),
        result=result_view,
    )


class SessionStore:
    """In-memory session id -> AppState map. Nothing outlives the process.

    Sessions idle for longer than ``ttl_seconds`` are dropped, and once
    ``max_sessions`` is reached the least recently used one is evicted.
    Reading an unknown session never creates an entry.
    """

    def __init__(
        self,
        max_sessions: int = 100,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_sessions = max_sessions
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._states: "OrderedDict[str, Tuple[float, AppState]]" = OrderedDict()

    def get(self, session_id: str) -> AppState:
        self._evict_expired()
        entry = self._states.get(session_id)
        if entry is None:
            return AppState()
        self._states[session_id] = (self._clock(), entry[1])
        self._states.move_to_end(session_id)
        return entry[1]

    def put(self, session_id: str, state: AppState) -> AppState:
        self._evict_expired()
        self._states[session_id] = (self._clock(), state)
        self._states.move_to_end(session_id)
        while len(self._states) > self._max_sessions:
            evicted, _ = self._states.popitem(last=False)
            logger.info("Evicted session %s (store full)", evicted[:8])
        return state

    def update(self, session_id: str, handler: Callable[..., AppState], *args) -> AppState:
        return self.put(session_id, handler(self.get(session_id), *args))

    def discard(self, session_id: str) -> None:
        self._states.pop(session_id, None)

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self._ttl_seconds
        # Entries are ordered by last access, oldest first
        while self._states:
            session_id, (last_seen, _) = next(iter(self._states.items()))
            if last_seen > cutoff:
                break
            del self._states[session_id]
            logger.info("Expired session %s", session_id[:8])

    def __len__(self) -> int:
        return len(self._states)


async def submit(store: SessionStore, session_id: str, processor: Processor) -> AppState:
    state = store.get(session_id)
    if not can_submit(state):
        return state

    state = store.put(session_id, begin_submission(state))
    submission_id = state.submission_id
    logger.info("Submission %d started (mode=%s)", submission_id, state.mode.value)

    try:
        content = build_input(state)
        outcome = await processor(content)
    except Exception:
        logger.exception("Submission %d failed before a response was parsed", submission_id)
        outcome = ProcessFailure(code=UNEXPECTED_ERROR, message=ERROR_MESSAGES[UNEXPECTED_ERROR])

    if isinstance(outcome, ProcessFailure):
        logger.warning("Submission %d failed: %s %s", submission_id, outcome.code, outcome.message)
        return store.update(session_id, commit_failure, submission_id, PROCESSING_FAILED_MESSAGE)

    logger.info("Submission %d succeeded", submission_id)
    return store.update(session_id, commit_success, submission_id, outcome.result)
