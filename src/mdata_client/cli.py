"""``mdata`` command line: get, keys, put and delete metadata keys.

Exit status follows the SmartOS mdata tools: 0 on success, 1 when the key
was not found, 2 for any other error, 3 for usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .client import MetadataClient
from .config import (
    ClientConfig,
    Transport,
    default_client_config,
    serial_config,
    socket_config,
)
from .errors import MetadataError, NotFoundError

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_NOTFOUND = 1
EXIT_ERROR = 2
EXIT_USAGE = 3


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="mdata", description="SmartOS metadata client")
    parser.add_argument("-v", "--verbose", action="store_true", help="log protocol traffic")
    parser.add_argument(
        "--transport",
        choices=[t.value for t in Transport],
        help="force a transport instead of probing the environment",
    )
    parser.add_argument("--socket", help="Unix socket path (implies --transport unix)")
    parser.add_argument("--tcp", metavar="HOST:PORT", help="TCP address (implies --transport tcp)")
    parser.add_argument("--serial-port", help="serial device (implies --transport serial)")
    parser.add_argument("--timeout", type=float, help="read timeout in seconds")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("get", help="get a metadata key")
    p.add_argument("key")
    sub.add_parser("keys", help="list metadata keys")
    p = sub.add_parser("put", help="put a metadata key-value pair")
    p.add_argument("key")
    p.add_argument("value")
    p = sub.add_parser("delete", help="delete a metadata key")
    p.add_argument("key")
    return parser


def config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Build a config from command line overrides, falling back to probing."""
    if args.socket:
        return socket_config(Transport.UNIX, args.socket, args.timeout)
    if args.tcp:
        return socket_config(Transport.TCP, args.tcp, args.timeout)
    if args.serial_port:
        return serial_config(args.serial_port, args.timeout)

    config = default_client_config()
    if args.transport and config.transport.value != args.transport:
        raise MetadataError(
            f"--transport {args.transport} needs an address "
            f"(--socket, --tcp or --serial-port)"
        )
    if args.timeout is not None:
        if config.serial is not None:
            config.serial.timeout = args.timeout
        if config.socket is not None:
            config.socket.timeout = args.timeout
    return config


def run_command(client: MetadataClient, args: argparse.Namespace) -> str:
    if args.command == "get":
        return client.get(args.key)
    if args.command == "keys":
        return client.keys()
    if args.command == "put":
        client.put(args.key, args.value)
    elif args.command == "delete":
        client.delete(args.key)
    return ""


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = config_from_args(args)
        with MetadataClient.open(config) as client:
            result = run_command(client, args)
    except NotFoundError as e:
        key = getattr(args, "key", None)
        print(f"No metadata for '{key}'" if key else f"Error: {e}", file=sys.stderr)
        return EXIT_NOTFOUND
    except MetadataError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if result:
        print(result)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
