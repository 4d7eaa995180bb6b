"""Entry point for running the game server via ``python -m tictactoe``."""

from __future__ import annotations

import uvicorn

from . import config


def main() -> None:
    """Start the FastAPI-powered Tic-Tac-Toe web server."""

    config.setup_logging()
    uvicorn.run(
        "tictactoe.ui:app",
        host=config.HOST,
        port=config.PORT,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
