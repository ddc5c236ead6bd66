"""Structured logging for the hook, written to stderr next to the deploy output."""

import logging
import sys

import structlog

RUN_CONTEXT_KEYS = ("operation", "run_id")


def prefix_run_context(logger, method_name: str, event_dict: dict) -> dict:
    """Fold the bound operation and run id into the event text.

    ``{"operation": "deploy", "run_id": "3f2a9c", "event": "Created ..."}``
    becomes ``{"event": "[deploy 3f2a9c] Created ..."}``. Events logged outside
    a run are left alone.
    """
    parts = [str(event_dict.pop(key)) for key in RUN_CONTEXT_KEYS if event_dict.get(key)]
    if parts:
        event_dict["event"] = f"[{' '.join(parts)}] {event_dict.get('event', '')}"
    return event_dict


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Route stdlib and structlog records through one stderr handler.

    Args:
        log_level: Logging level string (debug/info/warning/error).
        json_output: If True, one JSON object per line with the run context as
            fields. If False, console lines prefixed with the run context.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        render_chain = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render_chain = [prefix_run_context, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render_chain],
        foreign_pre_chain=shared_processors,
    )

    # stdout belongs to the deploy command that triggered the hook
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(operation: str, org_id: str | None = None, run_id: str | None = None) -> None:
    """Bind the operation, org and run id for the records of one hook run."""
    ctx = {"operation": str(operation)}
    if org_id:
        ctx["org_id"] = org_id
    if run_id:
        ctx["run_id"] = run_id
    structlog.contextvars.bind_contextvars(**ctx)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()
