"""loguru sinks for the GxT agent.

Modules log through ``from loguru import logger`` directly; this only wires
the sinks. What ends up where:

* INFO: pipeline cycles and scores, risk approvals, backtest start/finish.
* DEBUG: risk rejections, simulated fills and exits, bar fetches.
* WARNING/ERROR: missing quotes or peer history, failed fetches, failed
  backtest runs. ERROR and above are also copied to ``<log>_error.log``.
"""

from __future__ import annotations

import sys

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def _file_sink(path: str, level: str) -> None:
    logger.add(
        path,
        level=level,
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention=5,
        compression="zip",
        enqueue=True,
    )


def setup_logger(log_level: str = "INFO", log_file: str | None = "logs/gxt.log") -> None:
    """Replace loguru's default sink with the agent's console and file sinks.

    An empty *log_file* (the test and one-off script setting) keeps logging
    on stderr only.
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=_CONSOLE_FORMAT, colorize=True)

    if log_file:
        _file_sink(log_file, log_level)
        _file_sink(log_file.replace(".log", "_error.log"), "ERROR")

    logger.debug("Logging at {} (file: {})", log_level, log_file or "none")
