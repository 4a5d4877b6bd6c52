"""Playback of the recorded payload."""

from __future__ import annotations

import logging

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


class SoundDevicePlayer:
    def play(self, payload: AudioPayload) -> None:
        if payload.is_empty:
            logger.debug("Nothing to play back")
            return
        if sd is None or np is None:
            raise RuntimeError("sounddevice is not installed")
        samples = np.frombuffer(payload.data, dtype=np.int16)
        if payload.channels > 1:
            samples = samples.reshape(-1, payload.channels)
        # Non-blocking: sounddevice plays in the background.
        sd.play(samples, samplerate=payload.sample_rate)
