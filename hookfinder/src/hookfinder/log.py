import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Single stderr handler on the package logger; safe to call more than once."""
    package_logger = logging.getLogger("hookfinder")
    package_logger.setLevel(level.upper())
    if not any(getattr(h, "_hookfinder", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hookfinder = True
        package_logger.addHandler(handler)
