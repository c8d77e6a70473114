"""structlog setup for semtag.

Events are rendered through stdlib handlers so every output can pick its own
format and level. Work done inside one queue batch or batch job carries the
same ``run_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from semtag.config.models import LoggingConfig, LogOutputConfig

_current_run: ContextVar[str | None] = ContextVar("semtag_run_id", default=None)

# Third-party loggers that only add noise at INFO.
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncio")


def get_run_id() -> str | None:
    return _current_run.get()


def set_run_id(run_id: str | None = None) -> str:
    """Bind ``run_id`` (or a fresh 12-hex id) to the current context."""
    value = run_id or uuid4().hex[:12]
    _current_run.set(value)
    return value


def clear_run_id() -> None:
    _current_run.set(None)


def _inject_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    run_id = _current_run.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


def _to_level(name: str | None, fallback: int = logging.INFO) -> int:
    if not name:
        return fallback
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else fallback


def _formatter(
    output: LogOutputConfig, pre_chain: list[structlog.types.Processor]
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        interactive = output.destination in ("stderr", "stdout") and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=interactive, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def _handler(destination: str) -> logging.Handler:
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    log_path = Path(destination)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install structlog processors and one root handler per configured output.

    Without ``config`` a single stderr output is created from ``json_format``
    and ``level``. Calling this again replaces the previous handlers.
    """
    from semtag.config.models import LoggingConfig, LogOutputConfig

    cfg = config or LoggingConfig(
        level=level,
        outputs=[LogOutputConfig(format="json" if json_format else "console")],
    )
    root_level = _to_level(cfg.level)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _inject_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in cfg.outputs:
        handler = _handler(output.destination)
        handler.setLevel(_to_level(output.level, root_level))
        handler.setFormatter(_formatter(output, pre_chain))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound with ``logger=<name>`` when a name is given."""
    log = structlog.get_logger()
    return log.bind(logger=name) if name else log  # type: ignore[no-any-return]
