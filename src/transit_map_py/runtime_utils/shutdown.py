import logging
import os
from typing import Any


def handle_sigterm(_: int, __: Any) -> None:
    """
    handler function for when the container receives SIGTERM

    operators already being built are finished, operators not yet started are
    skipped
    """
    logging.info("SIGTERM received")
    os.environ["GOT_SIGTERM"] = "TRUE"


def sigterm_received() -> bool:
    """check if SIGTERM was received since the process started"""
    return os.environ.get("GOT_SIGTERM") is not None
