"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os


def _env(name: str, default: str) -> str:
    value = os.environ.get(name)
    if value is not None and value.strip() != "":
        return value.strip()
    return default


HOST = _env("TICTACTOE_HOST", "0.0.0.0")
PORT = int(_env("TICTACTOE_PORT", "8000"))

# Pause before the engine answers, so its move does not land instantly
AI_DELAY_SECONDS = int(_env("TICTACTOE_AI_DELAY_MS", "650")) / 1000.0

LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()


def setup_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    root.addHandler(handler)
