"""
Run the catalog API with uvicorn.

Usage:
    python -m catalog [--host HOST] [--port PORT] [--in-memory]
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from catalog.app import create_app
from catalog.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Catalog API server")
    parser.add_argument("--host", type=str, default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Use in-memory repositories instead of the database",
    )
    args = parser.parse_args()

    if args.in_memory:
        settings = settings.model_copy(update={"use_in_memory_backends": True})

    app = create_app(settings)
    logger.info("Serving catalog API on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
