"""
Logging configuration.

Configures loguru sinks for services and background jobs.
Sets up log rotation and retention policies.
"""

import sys
from pathlib import Path

from loguru import logger

from app.config.settings import settings


def setup_logging(component: str = "referral_engine") -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        component: Log file name prefix (one file per process type)
    """
    logger.remove()
    # Variable values in tracebacks stay out of production logs
    diagnose = not settings.is_production
    logger.add(sys.stderr, level=settings.log_level, diagnose=diagnose)

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / f"{component}.log",
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
        diagnose=diagnose,
    )

    logger.info(f"Logging configured for {component} ({settings.environment})")
