"""
Logging setup shared by the app and batch entry points
"""
import logging
from typing import Optional

from config import settings

_HANDLER_NAME = "tenant_merge"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a single stream handler to the root logger.

    Safe to call repeatedly (Streamlit re-runs the script on every
    interaction); the handler is only installed once.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root.addHandler(handler)

    return root
