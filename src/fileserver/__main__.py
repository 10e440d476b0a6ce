"""
=============================================================================
CLI
=============================================================================

    python -m fileserver                         # serve ./ on 127.0.0.1:8080
    python -m fileserver ./public --port 3000
    python -m fileserver /srv/www --host 0.0.0.0 --prefix /files
    python -m fileserver . --cache-size 64M --check-interval 5

Every option falls back to its FILESERVER_* environment variable (see
config.py), and from there to the built-in default.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import ServerConfig
from .middleware import LoggingMiddleware
from .server import HTTPServer


_SIZE_SUFFIXES = {"K": 1 << 10, "M": 1 << 20, "G": 1 << 30}


def parse_size(value: str) -> int:
    """
    "265M" → 277872640. Plain numbers are bytes.

    Raises:
        argparse.ArgumentTypeError: On anything else.
    """
    text = value.strip().upper().rstrip("B")
    multiplier = 1
    if text and text[-1] in _SIZE_SUFFIXES:
        multiplier = _SIZE_SUFFIXES[text[-1]]
        text = text[:-1]
    try:
        size = int(text) * multiplier
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}")
    if size < 0:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Serve a directory over HTTP with an in-memory content cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserver ./public                      Serve ./public on 127.0.0.1:8080
  fileserver ./public --port 3000          Custom port
  fileserver /srv/www --host 0.0.0.0       Listen on all interfaces
  fileserver . --prefix /files             Mount under /files/
  fileserver . --cache-size 64M            Smaller cache
        """,
    )

    parser.add_argument("root", nargs="?", default=None, help="Directory to serve (default: .)")

    parser.add_argument("--host", "-H", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: 8080)")
    parser.add_argument("--workers", "-w", type=int, default=None,
                        help="Worker threads (max will be 2x this)")

    parser.add_argument("--prefix", default=None, help="URL prefix to mount the files under")
    parser.add_argument("--index-page", default=None, help="Directory index page (default: /index.html)")
    parser.add_argument("--check-interval", type=float, default=None,
                        help="Seconds between change-detection sweeps (default: 1)")
    parser.add_argument("--no-detect", action="store_true", help="Disable change detection")

    parser.add_argument("--cache-size", type=parse_size, default=None,
                        help="Cache byte budget, e.g. 64M (default: 265M)")
    parser.add_argument("--cache-entries", type=int, default=None, help="Maximum cached files")
    parser.add_argument("--cache-ttl", type=float, default=None, help="Seconds a cached file stays valid")

    parser.add_argument("--log-level", "-l", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None,
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-format", choices=["text", "json"], default=None,
                        help="Access log format (default: text)")

    parser.add_argument("--version", "-v", action="version", version=f"fileserver {__version__}")

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-based config with command-line overrides applied."""
    config = ServerConfig.from_env()

    overrides = {
        "root": args.root,
        "host": args.host,
        "port": args.port,
        "url_prefix": args.prefix,
        "index_page": args.index_page,
        "check_interval": args.check_interval,
        "cache_max_bytes": args.cache_size,
        "cache_max_entries": args.cache_entries,
        "cache_ttl": args.cache_ttl,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.no_detect:
        config.detect_changes = False

    return config


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    server.use(LoggingMiddleware(log_format=config.log_format))

    try:
        server.run()
    except OSError as e:
        logging.getLogger("fileserver").error(f"Server failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
