"""Entry point for running the relay via ``python -m xoduel``."""

from __future__ import annotations

import logging

import uvicorn

from .config import Settings


def main() -> None:
    """Start the FastAPI-powered relay server."""

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "xoduel.ui:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
