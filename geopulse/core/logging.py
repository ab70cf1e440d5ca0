# geopulse/core/logging.py
# -----------------------------------------------------------------------------
# Loguru logging setup
# - rotating file sink + stderr sink
# - modules just do `from loguru import logger`
# -----------------------------------------------------------------------------
import sys
from pathlib import Path

from loguru import logger

from geopulse.core.config import settings


def setup_logging(log_dir: str | None = None, level: str | None = None) -> None:
    log_path = Path(log_dir or settings.LOG_DIR)
    log_path.mkdir(exist_ok=True, parents=True)
    level = level or settings.LOG_LEVEL

    logger.remove()  # drop the default handler
    logger.add(sys.stderr, level=level)
    logger.add(
        log_path / "geopulse.log",
        rotation="10 MB",
        retention=10,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        level=level,
    )
