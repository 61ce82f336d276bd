"""loguru sinks for the API process, the sweeper job and scripts.

Structured kwargs passed to logger calls (user_id, schedule_id, ...) land in
`extra` and are rendered after the message.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> <dim>{extra}</dim>"
)
FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default handler with a console sink and an optional file sink.

    Args:
        level: Minimum level for both sinks
        log_file: Path of a rotating log file; console only when None
        rotation: When to rotate the file (size or interval)
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            enqueue=True,
            diagnose=False,
        )

    logger.debug("Logging configured", level=level, log_file=log_file)
