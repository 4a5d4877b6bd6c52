"""State-machine based session orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from errors import (
    CAPTURE_FAILED,
    CLIENT_REJECTED,
    ERROR_MESSAGES,
    NETWORK_FAILURE,
    PERMISSION_DENIED,
    SERVER_ERROR,
    PermissionDenied,
)
from interfaces import AudioCapture, AudioPlayer, Notifier, Uploader
from models import (
    AudioPayload,
    NotificationKind,
    RecipeRecord,
    RecordingSession,
    SessionState,
    SessionView,
    UploadOutcome,
    UploadResult,
)
from recipe import format_input_summary

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
ViewCallback = Callable[[SessionView], None]
ErrorCallback = Callable[[str, str], None]

UPLOADING_MESSAGE = "Uploading and processing audio..."
RECORDING_STARTED_MESSAGE = "Recording started!"
RECORDING_STOPPED_MESSAGE = "Recording stopped!"

_OUTCOME_CODES = {
    UploadOutcome.CLIENT_REJECTED: CLIENT_REJECTED,
    UploadOutcome.SERVER_ERROR: SERVER_ERROR,
    UploadOutcome.NETWORK_FAILURE: NETWORK_FAILURE,
}


class SessionController:
    """Ties the capture lifecycle to the upload lifecycle.

    ``IDLE -> RECORDING -> UPLOADING -> (COMPLETED | FAILED) -> IDLE``. The
    controller is the single source of truth for the transcript, the matched
    recipe and the input summary; the presenter reads them via :meth:`view`
    or the ``on_view_change`` callback.
    """

    def __init__(
        self,
        capture: AudioCapture,
        uploader: Uploader,
        notifier: Notifier,
        player: Optional[AudioPlayer] = None,
        on_state_change: Optional[StateCallback] = None,
        on_view_change: Optional[ViewCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._capture = capture
        self._uploader = uploader
        self._notifier = notifier
        self._player = player
        self._on_state_change = on_state_change
        self._on_view_change = on_view_change
        self._on_error = on_error

        self._lock = threading.RLock()
        self._session = RecordingSession()
        self._transcript = ""
        self._matched_recipe: Optional[RecipeRecord] = None
        self._input_summary = ""

    @property
    def state(self) -> SessionState:
        return self._session.status

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def matched_recipe(self) -> Optional[RecipeRecord]:
        return self._matched_recipe

    @property
    def input_summary(self) -> str:
        return self._input_summary

    def view(self) -> SessionView:
        return SessionView(
            state=self.state,
            transcript=self._transcript,
            matched_recipe=self._matched_recipe,
            input_summary=self._input_summary,
        )

    def start_session(self) -> None:
        with self._lock:
            if self.state != SessionState.IDLE:
                logger.debug("Ignoring start while %s", self.state.value)
                return
            session = RecordingSession()
            try:
                session.source = self._capture.acquire()
                self._capture.start(session.source, session.audio_chunks, self._handle_finalized)
            except PermissionDenied as exc:
                logger.warning("Microphone access denied: %s", exc)
                self._session = session
                self._reject_start(PERMISSION_DENIED, str(exc))
                return
            except Exception as exc:
                logger.exception("Could not start capture")
                self._release_source(session.source)
                self._session = session
                self._reject_start(CAPTURE_FAILED, str(exc))
                return

            self._session = session
            self._transition(SessionState.RECORDING)
            self._notify(NotificationKind.SUCCESS, RECORDING_STARTED_MESSAGE)

    def stop_session(self) -> None:
        with self._lock:
            if self.state != SessionState.RECORDING:
                logger.warning("No active recording to stop (state %s)", self.state.value)
                return
            self._transition(SessionState.UPLOADING)
            self._notify(NotificationKind.SUCCESS, RECORDING_STOPPED_MESSAGE)

        try:
            self._capture.stop()
        except Exception as exc:
            logger.exception("Capture failed to finalize")
            with self._lock:
                if self.state == SessionState.UPLOADING and self._session.payload is None:
                    self._settle(UploadResult(kind=UploadOutcome.NETWORK_FAILURE, message=str(exc)), code=CAPTURE_FAILED)

    def cancel_session(self, reason: str) -> None:
        """Stop an active capture without uploading it."""
        with self._lock:
            if self.state == SessionState.IDLE:
                return
            if self.state != SessionState.RECORDING:
                logger.info("Upload in flight, cannot cancel (%s)", reason)
                return
            logger.info("Cancelling recording: %s", reason)
            self._transition(SessionState.IDLE)
            try:
                self._capture.stop()
            except Exception:
                logger.exception("Capture failed to stop during cancel")

    def _handle_finalized(self, payload: AudioPayload) -> None:
        with self._lock:
            if self.state != SessionState.UPLOADING or self._session.payload is not None:
                logger.debug("Discarding finalized audio (state %s)", self.state.value)
                return
            self._session.payload = payload

        result = self._upload(payload)

        with self._lock:
            self._settle(result)

    def _upload(self, payload: AudioPayload) -> UploadResult:
        loading_id = self._notify(NotificationKind.LOADING, UPLOADING_MESSAGE)
        try:
            return self._uploader.upload(payload)
        except Exception:
            logger.exception("Uploader raised instead of returning a result")
            return UploadResult(kind=UploadOutcome.NETWORK_FAILURE, message=ERROR_MESSAGES[NETWORK_FAILURE])
        finally:
            if loading_id is not None:
                self._dismiss(loading_id)

    def _settle(self, result: UploadResult, code: Optional[str] = None) -> None:
        if result.ok:
            self._transcript = result.transcript or ""
            self._matched_recipe = result.matched_recipe
            self._input_summary = format_input_summary(result.input_values)
            self._transition(SessionState.COMPLETED)
            self._play(self._session.payload)
            message = result.message
            if self._input_summary:
                message = f"{message} ({self._input_summary})"
            self._notify(NotificationKind.SUCCESS, message)
        else:
            code = code or _OUTCOME_CODES[result.kind]
            if code in (NETWORK_FAILURE, CAPTURE_FAILED):
                self._transcript = ERROR_MESSAGES[code]
            else:
                self._transcript = f"Error: {result.message}"
            if result.transcript is None:
                self._matched_recipe = None
            self._input_summary = ""
            self._transition(SessionState.FAILED)
            self._notify(NotificationKind.ERROR, self._transcript)
            self._emit_error(code, result.message)
        self._transition(SessionState.IDLE)
        self._publish_view()

    def _reject_start(self, code: str, message: str) -> None:
        self._transcript = ERROR_MESSAGES[code]
        self._notify(NotificationKind.ERROR, self._transcript)
        self._emit_error(code, message)
        self._publish_view()

    def _release_source(self, source: Any) -> None:
        if source is None:
            return
        try:
            source.close()
        except Exception:
            # The capture may already have closed it.
            logger.debug("Source close after failed start raised", exc_info=True)

    def _play(self, payload: Optional[AudioPayload]) -> None:
        if self._player is None or payload is None:
            return
        try:
            self._player.play(payload)
        except Exception:
            logger.exception("Playback failed")

    def _notify(self, kind: NotificationKind, message: str) -> Optional[int]:
        try:
            return self._notifier.notify(kind, message)
        except Exception:
            logger.exception("Notifier failed to show %s", kind.value)
            return None

    def _dismiss(self, notification_id: int) -> None:
        try:
            self._notifier.dismiss(notification_id)
        except Exception:
            logger.exception("Notifier failed to dismiss %s", notification_id)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _publish_view(self) -> None:
        if self._on_view_change:
            self._on_view_change(self.view())

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._session.status
        if from_state == to_state:
            return
        self._session.status = to_state
        logger.debug("Session %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
