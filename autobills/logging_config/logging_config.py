import logging
import logging.handlers
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10_000_000  # 10MB
LOG_BACKUPS = 5


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(app_name: str = "autobills") -> None:
    """Configure application logging

    Args:
        app_name: Name to use for log files

    """
    log_dir = Path(os.getenv("LOG_DIR", "/data/logs"))
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_dir / f"{app_name}.log", logging.INFO))
    # failed runs are only reported through logs, keep them separately
    root_logger.addHandler(_rotating_handler(log_dir / f"{app_name}-error.log", logging.ERROR))

    # discovery/http chatter from the Google client
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
