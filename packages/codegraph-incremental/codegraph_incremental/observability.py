"""
Structured logging for incremental builds

structlog routed through stdlib logging. Events are snake_case names with
keyword context; every event emitted during one compile invocation carries
that invocation's ``build_id``:

    logger = get_logger(__name__)
    with build_context(build_id="3f2a9c1d"):
        logger.info("dirty_set_computed", files=3, declarations=7)
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def get_log_level() -> str:
    """환경 변수 기반 로그 레벨"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None, json_format: bool = False) -> None:
    """
    구조화 로깅 설정.

    Args:
        level: 로그 레벨 (None이면 LOG_LEVEL 환경변수)
        json_format: One JSON object per line instead of the console renderer
    """
    level = (level or get_log_level()).upper()
    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO), force=True)


def get_logger(name: str):
    return structlog.get_logger(name)


@contextmanager
def build_context(**context: Any) -> Iterator[None]:
    """Attach ``context`` to every event logged inside the block (this thread/task only)."""
    with structlog.contextvars.bound_contextvars(**context):
        yield


def reset_logging() -> None:
    """structlog 기본값 복원 (테스트용)"""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
