"""Run the Gong connector with uvicorn.

Usage:
    python -m gong_connector --host 0.0.0.0 --port 8000
"""

import argparse

import uvicorn

from gong_connector.api.app import create_app
from gong_connector.config import Settings
from gong_connector.logging_config import configure_logging


def main() -> None:
    """Parse arguments, configure logging and serve the app."""
    parser = argparse.ArgumentParser(description="Gong connector webhook and block server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    args = parser.parse_args()

    settings = Settings.from_env()
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
