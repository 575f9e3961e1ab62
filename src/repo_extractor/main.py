"""Console entry point: ``repo-extractor`` starts the API under uvicorn."""

from __future__ import annotations

import logging

import uvicorn

from repo_extractor.infrastructure.config import get_settings

# Capped at WARNING.
_QUIET_LOGGERS = ("httpx", "httpcore", "git")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "repo_extractor.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
