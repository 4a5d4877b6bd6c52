"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from errors import PermissionDenied
from models import AudioPayload
from recorder import SoundDeviceRecorder


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

class _FakeNp:
    """Minimal numpy stand-in so recorder._on_audio doesn't bail."""

    class int16:
        pass

    @staticmethod
    def asarray(data, dtype=None):
        return data


class _FakeAudioInput:
    """Fake audio block similar to what the sounddevice callback provides."""

    def __init__(self, value: bytes = b"\x00\x00", n_samples: int = 1600) -> None:
        self._data = value * n_samples

    def tobytes(self) -> bytes:
        return self._data


class _FakePortAudioError(Exception):
    pass


def _started(mock_sd: MagicMock, recorder: SoundDeviceRecorder):
    chunks: list[bytes] = []
    payloads: list[AudioPayload] = []
    source = recorder.acquire()
    recorder.start(source, chunks, payloads.append)
    return source, chunks, payloads


# ---------------------------------------------------------------
# Acquire
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_acquire_opens_int16_stream(mock_sd: MagicMock) -> None:
    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)
    source = recorder.acquire()

    assert source is mock_sd.InputStream.return_value
    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["samplerate"] == 16000
    assert kwargs["dtype"] == "int16"
    assert kwargs["blocksize"] == 1600


@patch("recorder.sd")
def test_acquire_maps_portaudio_error_to_permission_denied(mock_sd: MagicMock) -> None:
    mock_sd.PortAudioError = _FakePortAudioError
    mock_sd.InputStream.side_effect = _FakePortAudioError("Error opening InputStream")

    with pytest.raises(PermissionDenied, match="microphone unavailable"):
        SoundDeviceRecorder().acquire()


def test_acquire_without_sounddevice_is_denied(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    with pytest.raises(PermissionDenied, match="sounddevice is not installed"):
        SoundDeviceRecorder().acquire()


@patch("recorder.sd")
def test_start_failure_is_denied_and_closes_stream(mock_sd: MagicMock) -> None:
    mock_sd.PortAudioError = _FakePortAudioError
    recorder = SoundDeviceRecorder()
    source = recorder.acquire()
    source.start.side_effect = _FakePortAudioError("blocked")

    with pytest.raises(PermissionDenied):
        recorder.start(source, [], lambda payload: None)

    source.close.assert_called_once()
    assert recorder.is_running is False


# ---------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_stop_finalizes_exactly_once(mock_sd: MagicMock) -> None:
    recorder = SoundDeviceRecorder()
    source, _, payloads = _started(mock_sd, recorder)
    source.start.assert_called_once()

    recorder.stop()
    recorder.stop()  # no active capture: warning only

    source.stop.assert_called_once()
    source.close.assert_called_once()
    assert len(payloads) == 1
    assert payloads[0].data == b""


@patch("recorder.sd")
def test_start_while_running_raises(mock_sd: MagicMock) -> None:
    recorder = SoundDeviceRecorder()
    source, chunks, payloads = _started(mock_sd, recorder)

    with pytest.raises(RuntimeError, match="already running"):
        recorder.start(source, chunks, payloads.append)

    source.start.assert_called_once()
    recorder.stop()
    assert len(payloads) == 1


@patch("recorder.sd")
def test_start_other_failure_resets_and_closes(mock_sd: MagicMock) -> None:
    mock_sd.PortAudioError = _FakePortAudioError
    recorder = SoundDeviceRecorder()
    source = recorder.acquire()
    source.start.side_effect = OSError("device busy")

    with pytest.raises(OSError, match="device busy"):
        recorder.start(source, [], lambda payload: None)

    assert recorder.is_running is False
    source.close.assert_called_once()

    # A fresh stream can be started afterwards.
    second = MagicMock()
    payloads: list[AudioPayload] = []
    recorder.start(second, [], payloads.append)
    second.start.assert_called_once()
    recorder.stop()
    assert len(payloads) == 1


def test_stop_without_start_is_noop(caplog) -> None:  # noqa: ANN001
    recorder = SoundDeviceRecorder()
    with caplog.at_level("WARNING", logger="recorder"):
        recorder.stop()

    assert "no active capture" in caplog.text


# ---------------------------------------------------------------
# Audio callback appends chunks in order
# ---------------------------------------------------------------

@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_callback_chunks_are_concatenated_in_order(mock_sd: MagicMock) -> None:
    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1)
    _, chunks, payloads = _started(mock_sd, recorder)

    recorder._on_audio(_FakeAudioInput(b"\x01\x00", 4), frames=4, time_info=None, status=None)
    recorder._on_audio(_FakeAudioInput(b"\x02\x00", 4), frames=4, time_info=None, status=None)

    assert chunks == [b"\x01\x00" * 4, b"\x02\x00" * 4]

    recorder.stop()
    assert payloads[0].data == b"\x01\x00" * 4 + b"\x02\x00" * 4
    assert payloads[0].sample_rate == 16000
    assert payloads[0].mime_type == "audio/wav"


@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_callback_after_stop_is_noop(mock_sd: MagicMock) -> None:
    recorder = SoundDeviceRecorder()
    _, chunks, _ = _started(mock_sd, recorder)
    recorder.stop()

    recorder._on_audio(_FakeAudioInput(), frames=1600, time_info=None, status=None)
    assert chunks == []
