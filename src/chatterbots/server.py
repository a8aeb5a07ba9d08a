"""Run the API with uvicorn."""

import argparse
import logging
import socket
import sys

import uvicorn

from .config import settings
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def is_port_in_use(host: str, port: int) -> bool:
    check_host = "localhost" if host in ("0.0.0.0", "::") else host
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex((check_host, port)) == 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Chatterbots API server")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    parser.add_argument("--reload", action="store_true", help="Reload on source changes")
    args = parser.parse_args(argv)

    setup_logging()

    if is_port_in_use(args.host, args.port):
        logger.error("Port %s is already in use; set API_PORT in .env or pass --port", args.port)
        return 1

    logger.info("Starting server on http://%s:%s", args.host, args.port)
    try:
        uvicorn.run(
            "chatterbots.main:create_default_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_level=settings.log_level.lower(),
            access_log=True,
            reload=args.reload,
        )
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
