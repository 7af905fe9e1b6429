"""Entrypoint: python -m collabhub"""
from __future__ import annotations

import uvicorn

from collabhub.config import settings


def main() -> None:
    uvicorn.run(
        "collabhub.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
