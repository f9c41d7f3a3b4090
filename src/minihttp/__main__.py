"""
=============================================================================
MINIHTTP CLI ENTRY POINT
=============================================================================

    # Defaults: 0.0.0.0:4221, files in /tmp/data/codecrafters.io/http-server-tester
    python -m minihttp

    # Custom port and storage directory
    python -m minihttp --port 8080 --directory ./files

    # Verbose, machine-readable logs
    python -m minihttp --log-level DEBUG --log-format json

Every option falls back to its HTTP_* environment variable, then to the
ServerConfig default.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS


def _timeout(value: str):
    if value.strip().lower() == "none":
        return None
    return float(value)


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Small threaded HTTP/1.1 server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttp                          # Run with defaults
  python -m minihttp --port 8080              # Custom port
  python -m minihttp --directory ./files      # Custom storage root
  python -m minihttp --timeout none           # Never time out reads
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=_timeout,
        default=defaults.timeout,
        help=f"Per-read timeout in seconds, or 'none' (default: {defaults.timeout})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE AND CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=defaults.directory,
        help=f"Storage root for /files (default: {defaults.directory})"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum concurrent connections (default: {defaults.max_workers})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttp {__version__}"
    )

    return parser


def main(argv=None):
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        max_request_size=defaults.max_request_size,
        max_workers=args.workers,
        directory=args.directory,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        server = create_app(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.run()
    except OSError as e:
        print(f"Failed to bind to {config.host}:{config.port}: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
