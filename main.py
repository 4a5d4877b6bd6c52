"""Application entrypoint."""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Optional, Sequence

from config import JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from models import SessionState
from player import SoundDevicePlayer
from presenter import ConsoleNotifier, ConsolePresenter
from recorder import SoundDeviceRecorder
from session_controller import SessionController
from upload_client import RecipeUploadClient

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voice-recipe",
        description="Speak nutritional targets and get the closest matching recipe.",
    )
    parser.add_argument("--server-url", help="Base URL of the matching service")
    parser.add_argument("--hotkey", help="pynput key name that toggles recording, e.g. Key.f9")
    parser.add_argument("--enter", action="store_true", help="Toggle recording with Enter instead of a global hotkey")
    parser.add_argument("--timeout", type=float, default=None, help="Upload timeout in seconds (default: none)")
    parser.add_argument("--save", action="store_true", help="Persist --server-url/--hotkey to the config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


class App:
    def __init__(self, args: argparse.Namespace, config_store: Optional[JsonConfigStore] = None) -> None:
        self.args = args
        self.config_store = config_store or JsonConfigStore()
        if args.save:
            if args.server_url:
                self.config_store.set_server_url(args.server_url)
            if args.hotkey:
                self.config_store.set_hotkey(args.hotkey)

        server_url = args.server_url or self.config_store.get_server_url()
        self.uploader = RecipeUploadClient(server_url, timeout=args.timeout)
        self.notifier = ConsoleNotifier()
        self.presenter = ConsolePresenter()
        self.controller = SessionController(
            capture=SoundDeviceRecorder(sample_rate=self.config_store.get_sample_rate()),
            uploader=self.uploader,
            notifier=self.notifier,
            player=SoundDevicePlayer(),
            on_state_change=self._on_state_change,
            on_view_change=self.presenter.render,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=args.hotkey or self.config_store.get_hotkey())
        self._stopped = threading.Event()
        self._worker: Optional[threading.Thread] = None
        logger.info("Using matching service at %s", server_url)

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        logger.debug("State %s -> %s", from_state.value, to_state.value)

    def _on_error(self, code: str, message: str) -> None:
        logger.warning("%s: %s", code, message)

    def toggle(self, background: bool = True) -> None:
        state = self.controller.state
        if state == SessionState.IDLE:
            self.controller.start_session()
        elif state == SessionState.RECORDING:
            if not background:
                self.controller.stop_session()
                return
            # stop_session blocks on the upload; keep the hotkey listener free.
            self._worker = threading.Thread(target=self.controller.stop_session, daemon=True)
            self._worker.start()
        else:
            logger.info("Still processing the previous recording")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            if self.args.enter:
                self._run_enter_loop()
            else:
                self._run_hotkey()
        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.quit()
        return 0

    def _run_hotkey(self) -> None:
        try:
            self.hotkey.start(on_toggle=self.toggle)
        except Exception as exc:
            logger.warning("Hotkey disabled (%s), falling back to Enter", exc)
            self._run_enter_loop()
            return
        print("Press the hotkey to start or stop recording, Ctrl+C to quit.", flush=True)
        self._stopped.wait()

    def _run_enter_loop(self) -> None:
        print("Press Enter to start or stop recording, Ctrl+C to quit.", flush=True)
        while not self._stopped.is_set():
            input()
            self.toggle(background=False)

    def quit(self) -> None:
        self._stopped.set()
        self.hotkey.stop()
        self.controller.cancel_session("app quit")
        worker = self._worker
        if worker is not None and worker.is_alive():
            # An in-flight upload runs to settlement before the client closes.
            logger.info("Waiting for the upload in progress to finish")
            worker.join()
        self.uploader.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App(args)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
