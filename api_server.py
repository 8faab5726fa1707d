"""API server entry point for evolution sessions.

HOST, PORT and LOG_LEVEL environment variables configure the server.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from evolver.api.routes import create_app

LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)
log = logging.getLogger(__name__)


def main() -> None:
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    log.info("Starting evolution API on %s:%d (log level %s)", host, port, LOG_LEVEL)
    uvicorn.run(create_app(), host=host, port=port, log_level=LOG_LEVEL)


if __name__ == "__main__":
    main()
