"""Logging configuration for spotrunner.

Structured logging via loguru. The library stays silent until a caller,
usually the CLI, runs ``setup_logging``.

Inside a GitHub Actions job, warnings and errors can additionally be
emitted as workflow commands (``::error::...``) so they show up as
annotations on the run summary.

Example:
    from spotrunner.logging import LogConfig, setup_logging, teardown_logging

    handler_ids = setup_logging(LogConfig(level="DEBUG", annotations=True))
    try:
        ...
    finally:
        teardown_logging(handler_ids)
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, TextIO, TypeAlias

from loguru import logger

logger.disable("spotrunner")

LogLevel: TypeAlias = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {name}:{line} - {message}"

_ERROR_NO = logger.level("ERROR").no


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Minimum console level.
        file: Optional log file; it always records DEBUG and above.
        console: Log to stderr.
        annotations: Emit warnings and errors as GitHub Actions workflow
            commands on stdout.
        rotation: File rotation policy (e.g., "50 MB", "1 day").
        retention: Number of rotated files to keep.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    console: bool = True
    annotations: bool = False
    rotation: str = "50 MB"
    retention: int = 10


def escape_command(text: str) -> str:
    """Escape a workflow command payload (``%``, CR and LF)."""
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def annotation_sink(stream: TextIO | None = None) -> Callable[[Any], None]:
    """Sink writing ``::warning::``/``::error::`` lines for the Actions runner."""

    def sink(message: Any) -> None:
        record = message.record
        command = "error" if record["level"].no >= _ERROR_NO else "warning"
        out = stream or sys.stdout
        out.write(f"::{command}::{escape_command(record['message'])}\n")
        out.flush()

    return sink


def setup_logging(config: LogConfig, stream: TextIO | None = None) -> list[int]:
    """Enable spotrunner logging and return handler ids for ``teardown_logging``.

    ``stream`` overrides stdout for annotations.
    """
    logger.enable("spotrunner")
    logger.configure(extra={"component": "spotrunner"})
    handler_ids: list[int] = []

    if config.console:
        handler_ids.append(
            logger.add(sys.stderr, level=config.level, format=CONSOLE_FORMAT, colorize=True, filter="spotrunner")
        )

    if config.annotations:
        handler_ids.append(logger.add(annotation_sink(stream), level="WARNING", format="{message}", filter="spotrunner"))

    if config.file:
        handler_ids.append(
            logger.add(
                config.file,
                level="DEBUG",
                format=FILE_FORMAT,
                rotation=config.rotation,
                retention=config.retention,
                diagnose=False,  # tracebacks may hold the registration token
                filter="spotrunner",
            )
        )

    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("spotrunner")
