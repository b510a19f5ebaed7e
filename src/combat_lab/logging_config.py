import logging
import os
import sys
from typing import Optional, TextIO


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    """Install a single handler on the root logger (stdout unless ``stream`` is given).

    Respects COMBAT_LAB_LOG_LEVEL env var if present.
    """
    level_name = os.getenv("COMBAT_LAB_LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    # Remove existing handlers to avoid duplicates in repeated test runs
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
