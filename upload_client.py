"""HTTP client for the recipe matching service.

One call to :meth:`RecipeUploadClient.upload` is exactly one ``POST
/upload-audio`` exchange. The response is classified by status code and
returned as an :class:`~models.UploadResult`; transport problems never
escape as exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from errors import (
    CLIENT_REJECTED,
    ERROR_MESSAGES,
    NETWORK_FAILURE,
    SERVER_ERROR,
    TRANSCRIPTION_MISSING,
)
from models import AudioPayload, UploadOutcome, UploadResult

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/upload-audio"
AUDIO_FIELD = "audio"
DEFAULT_SUCCESS_MESSAGE = "Recipe matched successfully!"


def _message_from(data: dict, fallback: str) -> str:
    return str(data.get("message") or data.get("error") or fallback)


class RecipeUploadClient:
    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        # No local timeout unless asked for; the transport decides.
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def upload(self, payload: AudioPayload) -> UploadResult:
        files = {AUDIO_FIELD: (payload.filename, payload.to_wav(), payload.mime_type)}
        logger.info("Uploading %d bytes of audio to %s%s", len(payload.data), self._base_url, UPLOAD_PATH)
        try:
            response = self._client.post(UPLOAD_PATH, files=files)
        except httpx.HTTPError as exc:
            logger.error("Upload failed: %s", exc)
            return UploadResult(kind=UploadOutcome.NETWORK_FAILURE, message=ERROR_MESSAGES[NETWORK_FAILURE])

        try:
            data = response.json()
        except ValueError:
            logger.error("Server returned a non-JSON body (status %d)", response.status_code)
            return self._network_failure(response.status_code)
        if not isinstance(data, dict):
            logger.error("Server returned unexpected JSON: %r", data)
            return self._network_failure(response.status_code)

        logger.info("Server responded with status %d", response.status_code)
        return self._classify(response.status_code, data)

    def _classify(self, status_code: int, data: dict) -> UploadResult:
        transcript = data.get("text") or None
        matched_recipe = data.get("matched_recipe") or None
        input_values = self._input_values(data.get("input_values"))

        if status_code == 200:
            if transcript is None:
                return UploadResult(
                    kind=UploadOutcome.CLIENT_REJECTED,
                    message=str(data.get("error") or data.get("message") or ERROR_MESSAGES[TRANSCRIPTION_MISSING]),
                    status_code=status_code,
                )
            return UploadResult(
                kind=UploadOutcome.SUCCESS,
                message=str(data.get("message") or DEFAULT_SUCCESS_MESSAGE),
                transcript=str(transcript),
                matched_recipe=matched_recipe if isinstance(matched_recipe, dict) else None,
                input_values=input_values,
                status_code=status_code,
            )

        if status_code == 400:
            kind = UploadOutcome.CLIENT_REJECTED
            message = _message_from(data, ERROR_MESSAGES[CLIENT_REJECTED])
        else:
            kind = UploadOutcome.SERVER_ERROR
            message = _message_from(data, ERROR_MESSAGES[SERVER_ERROR])
        return UploadResult(
            kind=kind,
            message=message,
            transcript=str(transcript) if transcript is not None else None,
            status_code=status_code,
        )

    @staticmethod
    def _input_values(value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(key): str(item) for key, item in value.items()}

    @staticmethod
    def _network_failure(status_code: int) -> UploadResult:
        return UploadResult(
            kind=UploadOutcome.NETWORK_FAILURE,
            message=ERROR_MESSAGES[NETWORK_FAILURE],
            status_code=status_code,
        )
