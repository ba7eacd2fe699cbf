import logging
from typing import Optional, Union

logger = logging.getLogger("mpc_verify")


def setup_logger(level: Optional[Union[str, int]] = None) -> None:
    """Attach a stream handler to the package logger at ``level``."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if level is None:
        level = logging.INFO

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(level)


def short(value: Optional[str], keep: int = 10) -> str:
    """Truncate long identifiers for log lines."""
    if not value:
        return ""
    if len(value) <= keep * 2:
        return value
    return f"{value[:keep]}...{value[-keep:]}"
