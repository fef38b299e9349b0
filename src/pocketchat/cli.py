#!/usr/bin/env python3
"""
Command-line interface for PocketChat.

This module provides the main entry point for PocketChat when installed
as a package (via `pip install pocketchat`).

Usage:
    pocketchat [OPTIONS] COMMAND [ARGS]

Options:
    --db PATH       Database file (overrides configuration)
    --debug         Enable debug logging
    --version       Show version and exit
    --help          Show this message and exit
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import pydantic

from pocketchat import __version__
from pocketchat.config import Settings, get_settings
from pocketchat.exceptions import PocketChatError
from pocketchat.models import Message
from pocketchat.storage import ChatStorage, open_storage

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings, debug: bool = False) -> None:
    """
    Configure logging for the command-line shell.

    Args:
        settings: Application settings providing level and format.
        debug: Force debug logging.
    """
    log_level = logging.DEBUG if debug or settings.debug else settings.logging.level

    logging.basicConfig(
        level=log_level,
        format=settings.logging.format,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Returns:
        Configured parser with one subcommand per storage operation.
    """
    parser = argparse.ArgumentParser(
        prog="pocketchat",
        description="PocketChat - Local-first messaging",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Register two accounts and chat:
        pocketchat register alice pw1
        pocketchat register bob pw2
        pocketchat send alice bob --text hi
        pocketchat chat bob alice

Environment Variables:
    POCKETCHAT_DB_PATH          Database file path
    POCKETCHAT_CONFIG_FILE      TOML configuration file
    LOG_LEVEL                   Log level
        """,
    )

    parser.add_argument("--db", metavar="PATH", help="Database file path")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"PocketChat {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("migrate", help="Create or upgrade the database schema")

    p = sub.add_parser("register", help="Register a new account")
    p.add_argument("username")
    p.add_argument("password")

    p = sub.add_parser("login", help="Check an account's credentials")
    p.add_argument("username")
    p.add_argument("password")

    p = sub.add_parser("users", help="List the other accounts")
    p.add_argument("username", help="Account to leave out")

    p = sub.add_parser("send", help="Send a message")
    p.add_argument("sender")
    p.add_argument("receiver")
    p.add_argument("--text", default=None, help="Text body")
    p.add_argument("--image", default=None, metavar="URI", help="Image URI")

    p = sub.add_parser("chat", help="Show the conversation between two accounts")
    p.add_argument("user_a")
    p.add_argument("user_b")

    p = sub.add_parser("photo", help="Show or set a profile photo")
    p.add_argument("username")
    p.add_argument("uri", nargs="?", default=None, help="New photo URI")

    return parser


def format_message(message: Message) -> str:
    """Render one message as a single line."""
    parts = [f"[{message.id}] {message.timestamp} {message.sender} -> {message.receiver}:"]
    if message.message is not None:
        parts.append(message.message)
    if message.image is not None:
        parts.append(f"<image {message.image}>")
    return " ".join(parts)


def run_command(storage: ChatStorage, args: argparse.Namespace) -> int:
    """
    Execute one subcommand against an open storage.

    Returns:
        Exit code.
    """
    if args.command == "migrate":
        status = storage.status()
        print(f"Schema version: {status['version']}")
        for table, columns in status["tables"].items():
            print(f"  {table}: {', '.join(columns)}")
        print(f"Accounts: {status['accounts']}  Messages: {status['messages']}")
        print(f"Integrity: {'ok' if status['integrity_ok'] else 'FAILED'}")
        return 0

    if args.command == "register":
        account = storage.accounts.register(args.username, args.password)
        print(f"User registered: {account.username} (id {account.id})")
        return 0

    if args.command == "login":
        account = storage.accounts.authenticate(args.username, args.password)
        if account is None:
            print("Invalid username or password", file=sys.stderr)
            return 1
        print(f"Welcome back, {account.username}")
        return 0

    if args.command == "users":
        for account in storage.accounts.list_others(args.username):
            photo = f"  {account.photo}" if account.photo else ""
            print(f"{account.username}{photo}")
        return 0

    if args.command == "send":
        message = storage.conversations.send(
            args.sender, args.receiver, args.text, args.image
        )
        print(format_message(message))
        return 0

    if args.command == "chat":
        for message in storage.conversations.conversation(args.user_a, args.user_b):
            print(format_message(message))
        return 0

    if args.command == "photo":
        if args.uri is None:
            print(storage.accounts.get_photo(args.username) or "(no photo)")
        else:
            storage.accounts.update_photo(args.username, args.uri)
            print("Profile photo updated!")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the PocketChat shell.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except (PocketChatError, pydantic.ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings, args.debug)
    logger.debug(f"Starting PocketChat v{__version__}")

    try:
        with open_storage(args.db, settings.storage) as storage:
            return run_command(storage, args)
    except PocketChatError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
