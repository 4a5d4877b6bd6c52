"""Microphone capture backed by sounddevice."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

from errors import PermissionDenied
from interfaces import FinalizedCallback
from models import AudioPayload

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceRecorder:
    """Records int16 PCM from the default input device.

    ``acquire`` opens the stream, ``start`` begins appending one bytes chunk
    per PortAudio block to the caller's list, and ``stop`` drains the stream
    and hands the concatenated payload to ``on_finalized`` exactly once.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._chunks: Optional[List[bytes]] = None
        self._on_finalized: Optional[FinalizedCallback] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def acquire(self) -> Any:
        if sd is None:
            raise PermissionDenied("sounddevice is not installed")
        blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
        except (sd.PortAudioError, ValueError) as exc:
            raise PermissionDenied(f"microphone unavailable: {exc}") from exc
        logger.info("Microphone acquired (%d Hz, %d ch)", self.sample_rate, self.channels)
        return stream

    def start(self, source: Any, chunks: List[bytes], on_finalized: FinalizedCallback) -> None:
        with self._lock:
            if self._running:
                raise RuntimeError("capture already running")
            self._stream = source
            self._chunks = chunks
            self._on_finalized = on_finalized
            self._running = True
            try:
                source.start()
            except Exception as exc:
                self._reset()
                source.close()
                if isinstance(exc, sd.PortAudioError):
                    raise PermissionDenied(f"microphone refused to start: {exc}") from exc
                raise

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                logger.warning("stop() called with no active capture")
                return
            stream = self._stream
            try:
                # PortAudio waits for pending callbacks before returning.
                stream.stop()
            finally:
                stream.close()
                chunks = list(self._chunks or [])
                on_finalized = self._on_finalized
                self._reset()

        payload = AudioPayload.from_chunks(chunks, self.sample_rate, self.channels)
        logger.info("Capture finalized: %d chunks, %d bytes", len(chunks), len(payload.data))
        if on_finalized is not None:
            on_finalized(payload)

    def _reset(self) -> None:
        self._running = False
        self._stream = None
        self._chunks = None
        self._on_finalized = None

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        # No lock: stop() holds it while PortAudio drains these callbacks.
        chunks = self._chunks
        if not self._running or chunks is None:
            return
        if np is None:
            return
        chunks.append(np.asarray(indata, dtype=np.int16).tobytes())
