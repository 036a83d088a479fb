from __future__ import annotations

import logging
import threading

_LOCK = threading.Lock()
_HANDLER_NAME = "gitshelf-stream"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the ``gitshelf`` logger tree.

    Safe to call repeatedly; later calls only adjust the level.
    """
    logger = logging.getLogger("gitshelf")
    with _LOCK:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.set_name(_HANDLER_NAME)
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
            )
            logger.addHandler(handler)
    return logger
