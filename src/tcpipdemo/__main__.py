"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Start the server (blocks until Ctrl+C)
    python -m tcpipdemo server

    # Serve exactly one client, then exit
    python -m tcpipdemo server --max-connections 1

    # Send the default message
    python -m tcpipdemo client

    # Send your own message to another host
    python -m tcpipdemo client "Hello, layers!" --host 192.168.1.20

Installed console scripts are shortcuts for the two subcommands:

    tcpip-server --port 5000
    tcpip-client "Hello"

Configuration priority: command line > TCPIP_* environment > defaults.

Exit status: 0 on success, 1 when a socket step fails (like perror() +
exit(1) in a classic C socket program), 130 when interrupted.
=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import DemoConfig, LOG_LEVELS
from .client import DemoClient
from .core import DemoServer, SocketStepError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tcpipdemo",
        description="TCP/IP protocol layers, narrated over one real TCP exchange",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tcpipdemo server                 # Listen on 127.0.0.1:9999
  python -m tcpipdemo server --host 0.0.0.0  # Listen on all interfaces
  python -m tcpipdemo client                 # Send the default message
  python -m tcpipdemo client "Hi there"      # Send a custom message
        """,
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tcpipdemo {__version__}",
    )

    # Options shared by both sides. Defaults are None so that unset
    # options fall through to the environment.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--host", "-H", default=None,
                        help="Server address (default: 127.0.0.1)")
    common.add_argument("--port", "-p", type=int, default=None,
                        help="Server port (default: 9999)")
    common.add_argument("--buffer-size", "-b", type=int, default=None,
                        help="Application buffer size in bytes (default: 256)")
    common.add_argument("--timeout", "-t", type=float, default=None,
                        help="Socket timeout in seconds (default: block forever)")
    common.add_argument("--log-level", "-l", choices=LOG_LEVELS, default=None,
                        help="Diagnostics on stderr (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", parents=[common],
                                   help="Run the demo server")
    server.add_argument("--backlog", type=int, default=None,
                        help="listen() backlog (default: 5)")
    server.add_argument("--max-connections", "-n", type=int, default=None,
                        help="Exit after serving this many clients")

    client = subparsers.add_parser("client", parents=[common],
                                   help="Send one message to the demo server")
    client.add_argument("message", nargs="?", default=None,
                        help="Message to send (default: 'Hello from TCP Client!')")

    return parser


def config_from_args(args: argparse.Namespace) -> DemoConfig:
    """Environment first, then whatever was given on the command line."""
    config = DemoConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.log_level is not None:
        config.log_level = args.log_level
    if getattr(args, "backlog", None) is not None:
        config.backlog = args.backlog
    if getattr(args, "message", None) is not None:
        config.message = args.message

    config.validate()
    return config


def setup_logging(level_name: str):
    """Diagnostics go to stderr so they never mix with the narration."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("tcpipdemo").setLevel(level)


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)

    try:
        if args.command == "server":
            DemoServer(config).start(max_connections=args.max_connections)
        else:
            DemoClient(config).run()
    except SocketStepError as e:
        logger.debug("Socket step failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        sys.exit(130)


def server_main():
    """Console script: tcpip-server."""
    main(["server"] + sys.argv[1:])


def client_main():
    """Console script: tcpip-client."""
    main(["client"] + sys.argv[1:])


if __name__ == "__main__":
    main()
