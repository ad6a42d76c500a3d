#!/usr/bin/env python
"""
Start the AgroCamer FastAPI service.
"""

import argparse
import logging
import os
import sys

import uvicorn

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from agrocamer.infra.config import get_config
from agrocamer.observability.logging_utils import init_logging

logger = logging.getLogger(__name__)


def main():
    cfg = get_config()
    parser = argparse.ArgumentParser(
        description="Start the AgroCamer API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_web.py                          # default port from FASTAPI_PORT
    python run_web.py --port 8080              # listen on 8080
    python run_web.py --reference-store sqlite # local sqlite reference data
    python run_web.py --reload                 # auto-reload for development
        """,
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="bind address (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=cfg.fastapi_port,
        help=f"port (default: {cfg.fastapi_port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="reload on code changes (development)",
    )
    parser.add_argument(
        "--reference-store",
        type=str,
        choices=["memory", "sqlite", "supabase"],
        default=None,
        help="override REFERENCE_STORE",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="worker processes (default: 1)",
    )
    args = parser.parse_args()

    if args.reference_store:
        os.environ["REFERENCE_STORE"] = args.reference_store
        get_config.cache_clear()

    init_logging(log_path=get_config().log_path)
    display_host = args.host if args.host != "0.0.0.0" else "localhost"
    logger.info(f"Starting AgroCamer API: http://{display_host}:{args.port}")
    logger.info(f"API docs: http://{display_host}:{args.port}/docs")

    uvicorn.run(
        "agrocamer.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level="info",
    )


if __name__ == "__main__":
    main()
