import logging
import sys
from typing import Optional, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


def _emit_info(logger: logging.Logger, message: str, *, to_file: bool) -> None:
    """Send an INFO record to the file handlers only, or to the stream handlers only."""
    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        __file__,
        0,
        message,
        args=(),
        exc_info=None,
    )
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) == to_file:
            handler.handle(record)


def truncate_line(text: object, *, max_chars: int = 60, overflow_mark: str = "***") -> str:
    s = str(text)
    if max_chars <= 0:
        return ""
    if len(s) <= max_chars:
        return s
    if max_chars <= len(overflow_mark):
        return overflow_mark[:max_chars]
    return s[: (max_chars - len(overflow_mark))] + overflow_mark


def _render_rich_panel(
    *,
    app_title: str,
    config_title: str,
    host: str,
    sections: Sequence[tuple[str, Sequence[tuple[str, str]]]],
    footer_rows: Sequence[tuple[str, str]],
    key_width: int,
    line_max_chars: int,
) -> None:
    def _kv_table(rows: Sequence[tuple[str, str]]) -> Table:
        table = Table(show_header=False, box=box.SIMPLE, pad_edge=False, expand=False)
        table.add_column(style="bold cyan", no_wrap=True, width=key_width, justify="left")
        table.add_column(style="white", no_wrap=True, justify="left")
        val_max = max(1, line_max_chars - key_width - 2)
        for key, val in rows:
            table.add_row(key, truncate_line(val, max_chars=val_max))
        return table

    parts: list = [Text(app_title, style="bold"), Text(f"Host: {host}"), Text("")]
    for sec_name, sec_rows in sections:
        parts.append(Text(sec_name, style="bold cyan"))
        parts.append(_kv_table(sec_rows))
    if len(footer_rows) > 0:
        parts.append(Text("Output", style="bold cyan"))
        parts.append(_kv_table(footer_rows))
    Console().print(Panel(Group(*parts), title=config_title, border_style="green", expand=False))


def emit_cli_configuration(
    logger: logging.Logger,
    *,
    app_title: str,
    config_title: str,
    host: str,
    sections: Sequence[tuple[str, Sequence[tuple[str, object]]]],
    footer_rows: Optional[Sequence[tuple[str, object]]] = None,
    line_max_chars: int = 60,
) -> None:
    """
    Log the run configuration.

    On a terminal the configuration is drawn as a rich panel and the plain
    key/value listing goes to the log file only; otherwise the listing goes
    to every handler.
    """
    sec_norm = [
        (str(name), [(str(k), str(v)) for k, v in rows])
        for name, rows in sections
        if len(rows) > 0
    ]
    footer_norm = [(str(k), str(v)) for k, v in (footer_rows or [])]
    key_width = max([8] + [len(k) for _, rows in sec_norm for k, _ in rows] + [len(k) for k, _ in footer_norm])

    lines: list[str] = [str(app_title), f"Host: {host}\n", "*" * 60, str(config_title), "*" * 60]
    for sec_name, sec_rows in sec_norm:
        lines.append(f"{sec_name}:")
        lines.extend(f"  {k}:{' ' * max(1, key_width - len(k))}{v}" for k, v in sec_rows)
    if len(footer_norm) > 0:
        lines.append("Output:")
        lines.extend(f"  {k}:{' ' * max(1, key_width - len(k))}{v}" for k, v in footer_norm)
    lines.append("*" * 60 + "\n")

    if sys.stdout.isatty():
        _render_rich_panel(
            app_title=str(app_title),
            config_title=str(config_title),
            host=str(host),
            sections=sec_norm,
            footer_rows=footer_norm,
            key_width=key_width,
            line_max_chars=line_max_chars,
        )
    else:
        for line in lines:
            _emit_info(logger, line, to_file=False)
    for line in lines:
        _emit_info(logger, line, to_file=True)
