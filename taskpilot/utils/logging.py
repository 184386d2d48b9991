# =============================================
# File: taskpilot/utils/logging.py
# Purpose: Logging configuration (loguru file sink)
# =============================================
import os

from loguru import logger

_configured = False


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Add the rotating file sink once. An empty log_dir disables it."""
    global _configured
    if _configured:
        return
    if log_dir:
        logger.add(os.path.join(log_dir, "taskpilot.log"), rotation="10 MB", level=level.upper())
    _configured = True
