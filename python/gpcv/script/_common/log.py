import os
import sys
import logging
from typing import Optional

_MARKS = {
    logging.WARNING: ("Warning: ", "\033[33m"),
    logging.ERROR: ("Error: ", "\033[31m"),
}


class _PrefixFormatter(logging.Formatter):
    """``Warning:``/``Error:`` in front of the message, in color if asked."""

    def __init__(self, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        level = logging.ERROR if record.levelno >= logging.ERROR else record.levelno
        if level not in _MARKS:
            return msg
        prefix, ansi = _MARKS[level]
        if not msg.startswith(prefix):
            msg = prefix + msg
        return f"{ansi}{msg}\033[0m" if self.color else msg


def _use_color(stream) -> bool:
    if os.name == "nt" or "NO_COLOR" in os.environ:
        return False
    if os.environ.get("TERM", "").lower() == "dumb":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(log_file_path: Optional[str], level: int = logging.INFO) -> logging.Logger:
    """
    Route the root logger to ``log_file_path`` and stdout.

    A previous ``.log`` file of the same name is replaced; None logs to
    stdout only.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    handlers: list[logging.Handler] = []
    if log_file_path is not None:
        if log_file_path.endswith(".log") and os.path.exists(log_file_path):
            os.remove(log_file_path)
        fh = logging.FileHandler(log_file_path, encoding="utf-8")
        fh.setFormatter(_PrefixFormatter())
        handlers.append(fh)
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(_PrefixFormatter(color=_use_color(sys.stdout)))
    handlers.append(sh)
    for h in handlers:
        h.setLevel(level)
        root.addHandler(h)
    return root
