"""
HWP Document Tools Service: Main Entry Point
============================================
Starts the Flask-based document tools service.

Usage:
    python main.py                    # Default: 127.0.0.1:5000
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
    python main.py --resource-dir out # Where resource-mode images go
"""

import argparse
import logging

from hwpdoc.server import run_server

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="HWP Document Tools Service")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    parser.add_argument(
        "--resource-dir", default=None,
        help="Default directory for resource-mode images",
    )
    args = parser.parse_args()

    logger.info(f"Starting server on {args.host}:{args.port}")
    run_server(
        host=args.host,
        port=args.port,
        debug=args.debug,
        config={"HWPDOC_RESOURCE_DIR": args.resource_dir},
    )


if __name__ == "__main__":
    main()
