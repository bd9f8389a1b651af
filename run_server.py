"""Entry point for running the presence server with Uvicorn."""
from __future__ import annotations

import logging

import uvicorn

from livemap.config import get_settings


def main() -> None:
  settings = get_settings()
  logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
  uvicorn.run(
    "livemap.main:app",
    host=settings.host,
    port=settings.port,
    reload=settings.uvicorn_reload,
    log_level=settings.log_level.lower(),
  )


if __name__ == "__main__":
  main()
