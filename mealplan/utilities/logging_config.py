"""Logging setup for the meal planner server."""
import logging
import sys
from datetime import datetime


class PlannerFormatter(logging.Formatter):
    """Single-line, human-readable log records."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        formatted = f"{timestamp} | {record.levelname.ljust(8)} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def configure_logging(log_level: str = "INFO") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(PlannerFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    # Noisy third-party loggers
    for name, module_level in {
        "mealplan": level,
        "uvicorn": logging.INFO,
        "uvicorn.access": logging.WARNING,
        "httpx": logging.WARNING,
    }.items():
        logging.getLogger(name).setLevel(module_level)

    logging.getLogger(__name__).info("Logging configured: level=%s", logging.getLevelName(level))
