"""Process entry point — `python -m session_cache`.

Invariants:
    - uvicorn owns SIGINT/SIGTERM; the lifespan shutdown flushes sessions and closes the DB
    - server.run() returning means a shutdown signal (or failed startup) was received:
      the process always exits with status 1
"""

import sys

import uvicorn

from session_cache.config import get_settings


def main() -> int:
    settings = get_settings()
    config = uvicorn.Config(
        "session_cache.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    server = uvicorn.Server(config)
    server.run()
    return 1


if __name__ == "__main__":
    sys.exit(main())
