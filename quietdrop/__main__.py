"""
Process entry point: python -m quietdrop <server|client>
"""

import argparse
import logging
import sys

from .common.config import load_settings
from .common.exceptions import ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quietdrop",
        description="End-to-end encrypted message drop",
    )
    parser.add_argument("mode", choices=["server", "client"], help="Run as server or client")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except ConfigurationError as e:
        print(f"[!] Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.mode == "server":
        from .server import main as server_main
        return server_main(settings)

    from .client import main as client_main
    return client_main(settings)


if __name__ == "__main__":
    sys.exit(main())
