"""Application logging: console + rotating file, with URL and e-mail masking."""

import logging
import logging.handlers
import re
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"

LOGGER_NAME = "threadcomments"
LOG_FILE_NAME = "threadcomments.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class SensitiveDataFilter(logging.Filter):
    """Mask endpoint URLs and e-mail style user names in log records.

    Thread reporters and comment authors are often e-mail addresses.
    """

    URL_PATTERN = re.compile(r'https?://[^\s]+')
    EMAIL_PATTERN = re.compile(r'[\w.+-]+@[\w-]+(?:\.[\w-]+)+')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self.mask(a) if isinstance(a, str) else a for a in record.args)
        return True

    @classmethod
    def mask(cls, text: str) -> str:
        text = cls.URL_PATTERN.sub('[URL_MASKED]', text)
        return cls.EMAIL_PATTERN.sub('[USER_MASKED]', text)


def setup_logger(log_level: str = "INFO", mask_logs: bool = True, log_dir: Path = LOG_DIR) -> logging.Logger:
    """Set up the "threadcomments" logger. Call once at startup.

    Module loggers named "threadcomments.*" propagate here. A second call
    returns the already configured logger unchanged.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers:
        return logger

    log_dir.mkdir(parents=True, exist_ok=True)
    logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = [
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        ),
    ]
    sensitive_filter = SensitiveDataFilter() if mask_logs else None
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        if sensitive_filter is not None:
            handler.addFilter(sensitive_filter)
        logger.addHandler(handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)


def shutdown_logger() -> None:
    """Close and detach all handlers of the application logger."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
