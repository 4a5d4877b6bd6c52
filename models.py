"""Core data models for the app."""

from __future__ import annotations

import io
import time
import wave
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

RecipeRecord = Dict[str, Any]

AUDIO_MIME_TYPE = "audio/wav"
AUDIO_FILENAME = "audio.wav"


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    UPLOADING = "UPLOADING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UploadOutcome(str, Enum):
    SUCCESS = "success"
    CLIENT_REJECTED = "client_rejected"
    SERVER_ERROR = "server_error"
    NETWORK_FAILURE = "network_failure"


class NotificationKind(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class AudioPayload:
    data: bytes
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2
    mime_type: str = AUDIO_MIME_TYPE
    filename: str = AUDIO_FILENAME

    @classmethod
    def from_chunks(cls, chunks: List[bytes], sample_rate: int = 16000, channels: int = 1) -> "AudioPayload":
        return cls(data=b"".join(chunks), sample_rate=sample_rate, channels=channels)

    @property
    def is_empty(self) -> bool:
        return not self.data

    def to_wav(self) -> bytes:
        """Wrap the raw PCM in a WAV container."""
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(self.data)
        return buf.getvalue()


@dataclass(frozen=True)
class UploadResult:
    kind: UploadOutcome
    message: str = ""
    transcript: Optional[str] = None
    matched_recipe: Optional[RecipeRecord] = None
    input_values: Dict[str, str] = field(default_factory=dict)
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind == UploadOutcome.SUCCESS


@dataclass
class RecordingSession:
    status: SessionState = SessionState.IDLE
    audio_chunks: List[bytes] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    source: Any = None
    payload: Optional[AudioPayload] = None


@dataclass(frozen=True)
class SessionView:
    state: SessionState
    transcript: str = ""
    matched_recipe: Optional[RecipeRecord] = None
    input_summary: str = ""


@dataclass
class RecipeDetails:
    title: str = ""
    calories: Any = None
    protein: Any = None
    fat: Any = None
    sodium: Any = None
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    image_name: Optional[str] = None
