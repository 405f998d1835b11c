import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: str) -> int:
    """Map a level name to its number, falling back to INFO for unknown names."""
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    # Replace handlers so repeated app startups do not duplicate lines
    root.handlers = [handler]
    if not isinstance(logging.getLevelName(str(level).strip().upper()), int):
        root.warning("Unknown LOG_LEVEL %r, using INFO", level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
