"""Shared error codes and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
CLIENT_REJECTED = "CLIENT_REJECTED"
SERVER_ERROR = "SERVER_ERROR"
NETWORK_FAILURE = "NETWORK_FAILURE"
TRANSCRIPTION_MISSING = "TRANSCRIPTION_MISSING"
CAPTURE_FAILED = "CAPTURE_FAILED"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone access denied.",
    CLIENT_REJECTED: "Could not match recipe.",
    SERVER_ERROR: "Unexpected server response.",
    NETWORK_FAILURE: "Failed to upload audio.",
    TRANSCRIPTION_MISSING: "Transcription failed.",
    CAPTURE_FAILED: "Recording failed, please retry.",
}


class PermissionDenied(RuntimeError):
    """Raised by a capture backend when the microphone cannot be opened."""
