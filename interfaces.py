"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Any, Callable, List, Protocol

from models import AudioPayload, NotificationKind, SessionView, UploadResult

FinalizedCallback = Callable[[AudioPayload], None]


class AudioCapture(Protocol):
    def acquire(self) -> Any: ...

    def start(self, source: Any, chunks: List[bytes], on_finalized: FinalizedCallback) -> None: ...

    def stop(self) -> None: ...


class Uploader(Protocol):
    def upload(self, payload: AudioPayload) -> UploadResult: ...


class AudioPlayer(Protocol):
    def play(self, payload: AudioPayload) -> None: ...


class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> int: ...

    def dismiss(self, notification_id: int) -> None: ...


class ResultPresenter(Protocol):
    def render(self, view: SessionView) -> None: ...


class ConfigStore(Protocol):
    def get_server_url(self) -> str: ...

    def set_server_url(self, url: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_sample_rate(self) -> int: ...
