"""
vtable CLI - Command-line interface for the table client.

Usage:
    vtable state <table_id>       Fetch a table and print a summary
    vtable join <table_id>        Join a table and log every change

Connection settings default to the VTABLE_* environment variables
(see config.py) and can be overridden with flags.
"""

import argparse
import asyncio
import logging
import sys

from .config import ClientConfig, VTABLE_LOG_LEVEL


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="vtable - Shared virtual poker table client",
        prog="vtable",
    )
    parser.add_argument("--server", help="Authority origin, e.g. http://localhost:8080")
    parser.add_argument("--user-id", help="Local viewer identity")
    parser.add_argument("--cookie", help="Session cookie value")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    state_parser = subparsers.add_parser("state", help="Fetch a table and print a summary")
    state_parser.add_argument("table_id", help="Table id")

    join_parser = subparsers.add_parser("join", help="Join a table and log every change")
    join_parser.add_argument("table_id", help="Table id")
    join_parser.add_argument(
        "--reconnect-delay", type=float, help="Seconds before a push reconnect attempt"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else VTABLE_LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "state":
        sys.exit(asyncio.run(cmd_state(args)))
    elif args.command == "join":
        sys.exit(asyncio.run(cmd_join(args)))
    else:
        parser.print_help()
        sys.exit(1)


def _config(args) -> ClientConfig:
    return ClientConfig.from_env(
        server_url=args.server,
        table_id=args.table_id,
        user_id=args.user_id,
        session_cookie=args.cookie,
        reconnect_delay=getattr(args, "reconnect_delay", None),
    )


async def cmd_state(args) -> int:
    """Fetch a table and print a summary."""
    from .controller import TableController
    from .table.items import CardItem, ChipItem

    controller = TableController(_config(args))
    try:
        if not await controller.fetch_state():
            print(f"Error: unable to fetch table {args.table_id}")
            return 1
        session = controller.session
        cards = [item for item in session.registry if isinstance(item, CardItem)]
        chips = [item for item in session.registry if isinstance(item, ChipItem)]
        print(f"Table: {args.table_id}")
        print(f"Players: {len(session.players)}")
        print(f"Cards: {len(cards)} ({sum(1 for c in cards if c.is_owned)} owned)")
        print(f"Chips: {len(chips)} worth {sum(c.val for c in chips)}")
        print("\nSeats:")
        for slot in session.slots:
            print(f"  {slot.index}: {slot.label}")
        return 0
    finally:
        await controller.transport.aclose()


async def cmd_join(args) -> int:
    """Join a table and log every change until the session ends."""
    from .controller import TableController

    controller = TableController(_config(args))
    if not await controller.start():
        await controller.stop()
        return 1
    try:
        await controller.run_forever()
    finally:
        await controller.stop()
    return 0


if __name__ == "__main__":
    main()
