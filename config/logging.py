"""Loguru configuration for the SmartTrader engine.

Engine modules log through ``from loguru import logger`` and never add
sinks themselves. The application that embeds the engine calls
``setup_logging`` once (``create_risk_manager`` does it by default).
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from config.settings import settings

# Top-level packages whose records count as engine output
ENGINE_PACKAGES = ("config", "models", "risk", "execution")

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{name}:{function}:{line} | "
    "{message}"
)
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | "
    "{message}"
)
TEST_FORMAT = "{level: <8} | {name} | {message}"


def is_engine_record(record) -> bool:
    """True for records emitted from one of the engine packages."""
    name = record["name"] or ""
    return name.split(".", 1)[0] in ENGINE_PACKAGES


def setup_logging(
    level: Optional[str] = None,
    environment: Optional[str] = None,
    log_dir: str = "logs",
    engine_only: bool = False,
) -> None:
    """Replace loguru's sinks with the ones for the given environment.

    Args:
        level: Minimum level. Defaults to settings.LOG_LEVEL
        environment: development / production / test. Defaults to
            settings.ENVIRONMENT
        log_dir: Directory for the rotating file sink (development only)
        engine_only: Drop records that do not come from engine packages,
            for hosts that log through loguru themselves

    Development writes a daily-rotated file plus colored stdout; production
    writes plain stdout without variable values in tracebacks, so balances
    stay out of logs; test writes WARNING and above only.
    """
    level = level or settings.LOG_LEVEL
    environment = environment or settings.ENVIRONMENT
    record_filter = is_engine_record if engine_only else None

    logger.remove()

    if environment == "test":
        logger.add(sys.stdout, level="WARNING", format=TEST_FORMAT, colorize=False, filter=record_filter)
        return

    development = environment == "development"
    if development:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(
            str(Path(log_dir) / "smarttrader_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="30 days",
            level=level,
            format=FILE_FORMAT,
            filter=record_filter,
            backtrace=True,
            diagnose=True,
            enqueue=True,
        )

    logger.add(
        sys.stdout,
        level=level,
        format=CONSOLE_FORMAT if development else FILE_FORMAT,
        colorize=development,
        filter=record_filter,
        backtrace=True,
        diagnose=development,
    )

    logger.info(f"Engine logging configured ({environment}, level {level})")
