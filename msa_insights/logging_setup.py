import logging
from typing import Optional

from msa_insights.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the package logger.

    Library modules only create loggers; callers (scripts, services) opt in
    to output by calling this once at startup.
    """
    level_name = (level or get_settings().log_level).upper()
    package_logger = logging.getLogger("msa_insights")
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))
    if not any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
