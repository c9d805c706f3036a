from __future__ import annotations

import sys
from time import monotonic
from typing import Optional

from rich.console import Console
from rich.spinner import SPINNERS

_SPINNER_NAME = "gpcv_braille"
_SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


def _isatty() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def get_rich_spinner_name() -> str:
    if _SPINNER_NAME not in SPINNERS:
        SPINNERS[_SPINNER_NAME] = {
            "interval": 80,
            "frames": _SPINNER_FRAMES,
        }
    return _SPINNER_NAME


def format_elapsed(seconds: Optional[float]) -> str:
    if seconds is None:
        return "0.0s"
    s = float(max(0.0, seconds))
    if s < 60.0:
        return f"{s:.1f}s"
    total_seconds = int(round(s))
    if total_seconds < 3600:
        minutes, rem = divmod(total_seconds, 60)
        return f"{minutes}m{rem:02d}s"
    hours, rem_seconds = divmod(total_seconds, 3600)
    return f"{hours}h{rem_seconds // 60:02d}m"


def _print_mark(symbol: str, style: str, message: str) -> None:
    if _isatty():
        Console().print(f"[{style}]{symbol}[/{style}] {message}", highlight=False)
    else:
        print(f"{symbol} {message}", flush=True)


def print_success(message: str) -> None:
    _print_mark("✔︎", "green", str(message))


def print_failure(message: str) -> None:
    _print_mark("✘", "red", str(message))


class CliStatus:
    """Spinner around a blocking step; ends with a success or failure line."""

    def __init__(self, desc: str, *, enabled: bool = True) -> None:
        self.desc = str(desc)
        self.enabled = bool(enabled) and _isatty()
        self._status_cm = None
        self._done = False
        self._start_ts: Optional[float] = None

    def __enter__(self) -> "CliStatus":
        self._start_ts = monotonic()
        if self.enabled:
            self._status_cm = Console().status(
                self.desc,
                spinner=get_rich_spinner_name(),
                spinner_style="cyan",
            )
            self._status_cm.__enter__()
        return self

    def _stop(self) -> None:
        if self._status_cm is not None:
            self._status_cm.__exit__(None, None, None)
            self._status_cm = None

    def _elapsed(self) -> str:
        if self._start_ts is None:
            return format_elapsed(None)
        return format_elapsed(monotonic() - self._start_ts)

    def complete(self, message: str) -> None:
        if self._done:
            return
        self._stop()
        print_success(f"{message} [{self._elapsed()}]")
        self._done = True

    def fail(self, message: str) -> None:
        if self._done:
            return
        self._stop()
        print_failure(f"{message} [{self._elapsed()}]")
        self._done = True

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._done:
            self._stop()
