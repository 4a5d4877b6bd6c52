"""Console rendering of session results and toast-style notifications."""

from __future__ import annotations

import itertools
import logging
import sys
import threading
from typing import Dict, Optional, TextIO

from models import NotificationKind, SessionState, SessionView
from recipe import describe_recipe

logger = logging.getLogger(__name__)

_ICONS = {
    NotificationKind.LOADING: "⏳",
    NotificationKind.SUCCESS: "✅",
    NotificationKind.ERROR: "⚠️",
}


class ConsoleNotifier:
    """Prints notifications as they appear; loading ones are tracked until dismissed."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout
        self._ids = itertools.count(1)
        self._active: Dict[int, str] = {}
        self._lock = threading.Lock()

    @property
    def active(self) -> Dict[int, str]:
        with self._lock:
            return dict(self._active)

    def notify(self, kind: NotificationKind, message: str) -> int:
        notification_id = next(self._ids)
        if kind == NotificationKind.LOADING:
            with self._lock:
                self._active[notification_id] = message
        print(f"{_ICONS[kind]} {message}", file=self._stream, flush=True)
        return notification_id

    def dismiss(self, notification_id: int) -> None:
        with self._lock:
            message = self._active.pop(notification_id, None)
        if message is None:
            logger.debug("Notification %d already dismissed", notification_id)


class ConsolePresenter:
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout

    def render(self, view: SessionView) -> None:
        if view.state != SessionState.IDLE:
            return
        lines = []
        if view.transcript:
            lines.append(f"📝 Transcription: {view.transcript}")
        if view.input_summary:
            lines.append(f"🎯 Targets: {view.input_summary}")
        if view.matched_recipe:
            lines.extend(self._recipe_lines(view))
        if lines:
            print("\n".join(lines), file=self._stream, flush=True)

    def _recipe_lines(self, view: SessionView) -> list[str]:
        details = describe_recipe(view.matched_recipe or {})
        lines = [f"🍽️ Closest Recipe Match: {details.title or 'Untitled'}"]
        for label, value in (
            ("Calories", details.calories),
            ("Protein", details.protein),
            ("Fat", details.fat),
            ("Sodium", details.sodium),
        ):
            if value is not None:
                lines.append(f"  {label}: {value}")
        if details.ingredients:
            lines.append("  Ingredients:")
            lines.extend(f"    - {item}" for item in details.ingredients)
        if details.instructions:
            lines.append("  Instructions:")
            lines.extend(f"    {n}. {step}" for n, step in enumerate(details.instructions, start=1))
        if details.image_name:
            lines.append(f"  Image: {details.image_name}")
        return lines
