# log.py
import logging
import sys


def setup_logging(level=None) -> None:
    """Configure the root logger once with a stdout handler.

    ``level`` wins over ``LOG_LEVEL`` from the environment; unknown names fall back to INFO.
    """
    if level is None:
        from config import settings
        level = settings.LOG_LEVEL

    if isinstance(level, str):
        name = level.strip().upper()
        level = int(name) if name.isdigit() else logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(level)
