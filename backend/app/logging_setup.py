from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

# Pipeline code runs under logger.contextualize(job_id=...); everything else logs "-".
_CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {extra[job_id]} | {name}:{function}:{line} | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[job_id]} | {name}:{function}:{line} | {message}"


def configure_logging(log_dir: Path, level: str = "INFO") -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.remove()
    logger.configure(extra={"job_id": "-"})
    logger.add(
        sys.stderr,
        level=level,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        format=_CONSOLE_FORMAT,
    )
    logger.add(
        str(log_dir / "animation_pipeline.log"),
        level="DEBUG",
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        backtrace=True,
        diagnose=False,
        format=_FILE_FORMAT,
    )
