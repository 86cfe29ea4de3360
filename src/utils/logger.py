import os
import sys

from loguru import logger


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str | None = "logs") -> None:
    """Configure loguru sinks for the launchpad.

    Console level follows LOG_LEVEL when set. The file sink keeps DEBUG so
    per-trade lines ([LAUNCH] BUY/SELL, [GRAD] plans) survive for audits.
    ``log_dir=None`` disables the file sink.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    if log_dir is None:
        return
    logger.add(
        f"{log_dir}/launchpad_{{time:YYYY-MM-DD}}.log",
        rotation="50 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
