"""CLI entry point for mailpick."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .commands import (
    apply_cli_overrides,
    delete_cmd,
    list_messages_cmd,
    list_tags_cmd,
    restore_cmd,
    run_console,
    tag_cmd,
)
from .config import Config, load_config
from .dialog import InvalidTransition

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("mailpick")


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=Path("config.toml"),
        help="Path to configuration file (defaults are used if it does not exist)",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        help="Override archive backend base URL",
    )
    parser.add_argument(
        "--token",
        type=str,
        help="Archive API access token (prefer MAILPICK_API_TOKEN)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="Selection and bulk actions for an email archive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_common_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve - Run the console bridge
    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket console bridge")
    add_common_args(serve_parser)
    serve_parser.add_argument(
        "--port",
        type=int,
        help="WebSocket port (default from config: 9754)",
    )

    # list - List a mailbox page
    list_parser = subparsers.add_parser("list", help="List messages in a mailbox")
    add_common_args(list_parser)
    list_parser.add_argument("account", type=int, help="Account ID")
    list_parser.add_argument("mailbox", type=int, help="Mailbox ID")
    list_parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page number, starting at 1 (default: 1)",
    )
    list_parser.add_argument(
        "--page-size",
        type=int,
        help="Messages per page (default from config: 50)",
    )

    # tags - List all tags
    tags_parser = subparsers.add_parser("tags", help="List tags with message counts")
    add_common_args(tags_parser)

    # delete - Delete messages
    delete_parser = subparsers.add_parser("delete", help="Delete messages across accounts")
    add_common_args(delete_parser)
    delete_parser.add_argument(
        "keys",
        nargs="+",
        metavar="ACCOUNT:ID",
        help="Messages to delete",
    )

    # tag - Set tags on a message
    tag_parser = subparsers.add_parser("tag", help="Replace the tags of a message")
    add_common_args(tag_parser)
    tag_parser.add_argument("key", metavar="ACCOUNT:ID", help="Message to tag")
    tag_parser.add_argument(
        "tags",
        nargs="*",
        metavar="TAG",
        help="Tag paths such as /projects/alpha (none clears all tags)",
    )

    # restore - Restore messages to IMAP
    restore_parser = subparsers.add_parser("restore", help="Restore messages to the IMAP server")
    add_common_args(restore_parser)
    restore_parser.add_argument("account", type=int, help="Account ID")
    restore_parser.add_argument("ids", type=int, nargs="+", help="Message IDs")

    return parser


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config.exists():
        config = load_config(args.config)
    else:
        logger.info(f"Configuration file {args.config} not found, using defaults")
        config = Config()
    config = apply_cli_overrides(config, args)

    try:
        if args.command == "serve":
            asyncio.run(run_console(config))
            code = 0
        elif args.command == "list":
            code = asyncio.run(list_messages_cmd(config, args.account, args.mailbox, args.page))
        elif args.command == "tags":
            code = asyncio.run(list_tags_cmd(config))
        elif args.command == "delete":
            code = asyncio.run(delete_cmd(config, args.keys))
        elif args.command == "tag":
            code = asyncio.run(tag_cmd(config, args.key, args.tags))
        elif args.command == "restore":
            code = asyncio.run(restore_cmd(config, args.account, args.ids))
        else:
            parser.print_help()
            code = 2
    except (ValueError, InvalidTransition) as e:
        logger.error(str(e))
        code = 1
    except KeyboardInterrupt:
        code = 130

    sys.exit(code)


if __name__ == "__main__":
    main()
