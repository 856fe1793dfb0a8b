from __future__ import annotations

import argparse
import logging
import os
from typing import Optional

from fastapi import FastAPI

from interface_entry.bootstrap.application_builder import (
    TelegramWebhookUnavailableError,
    configure_application,
)

log = logging.getLogger("interface_entry.app")

CLI_DESCRIPTION = "Daily log Telegram relay"

app: Optional[FastAPI] = None


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Daily Log Relay", version="1.0.0")
    configure_application(fastapi_app)
    return fastapi_app


def configure_arg_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="bind address (default 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="listen port (default 8000, or $PORT)",
    )


def handle_cli(args: argparse.Namespace) -> None:
    global app  # type: ignore[assignment]
    app = create_app()

    import uvicorn

    try:
        uvicorn.run(
            app,
            host=getattr(args, "host", "0.0.0.0"),
            port=getattr(args, "port", int(os.getenv("PORT", "8000"))),
            log_config=None,
        )
    except TelegramWebhookUnavailableError as exc:
        log.critical("Startup aborted: %s", exc)
        raise


def main() -> None:
    parser = argparse.ArgumentParser(description=CLI_DESCRIPTION)
    configure_arg_parser(parser)
    handle_cli(parser.parse_args())
