"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from agentic_search.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Framework/network libraries that log through stdlib logging
NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncio",
)


def configure_logging(level: Optional[str] = None, *, to_file: Optional[bool] = None) -> None:
    """(Re)install the console sink and, when enabled, the daily file sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=(level or settings.app_log_level).upper(),
        colorize=True,
    )

    if settings.log_to_file if to_file is None else to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "agentic_search_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="00:00",  # New file at midnight
            retention="7 days",
            compression="zip",
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())


configure_logging()


def _emit(tag: str, payload: dict[str, Any], *, level: str = "INFO", **extra: Any) -> None:
    """Write one ``TAG: {...}`` line; ``extra`` is bound for sinks that use it."""
    record = {"timestamp": datetime.now(timezone.utc).isoformat(), **payload}
    logger.bind(**extra).log(level, f"{tag}: {record}")


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log an oracle (LLM) call with token usage and latency."""
    _emit(
        "LLM_CALL_FAILED" if error else "LLM_CALL",
        dict(
            model=model,
            caller=caller,
            tokens={"in": input_tokens, "out": output_tokens, "total": input_tokens + output_tokens},
            duration_ms=duration_ms,
            status=status,
            error=error,
        ),
        level="ERROR" if error else "INFO",
        caller=caller,
    )


def log_research_step(
    run_id: str,
    step_type: str,
    status: str,
    data: Optional[dict[str, Any]] = None,
) -> None:
    _emit(
        f"RESEARCH_STEP[{run_id}]",
        dict(step=step_type, status=status, data=data),
        level="WARNING" if status == "failed" else "INFO",
        run_id=run_id,
    )


def log_event(event_type: str, message: str, **kwargs: Any) -> None:
    _emit("EVENT", dict(event_type=event_type, message=message, **kwargs))
