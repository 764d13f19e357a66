"""
Wealthsimple CLI - Command-line interface for read-only portfolio access.

Usage:
    wealthsimple <command> [options]

Commands:
    accounts       List accounts
    positions      Show positions of an account
    transactions   Show transactions of an account
    auth           Check authentication
    login          Log in (username, password, one-time password)
    doctor         Run diagnostics
"""

import argparse
import logging
import os
import sys
from datetime import date
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

try:
    import argcomplete
    ARGCOMPLETE_AVAILABLE = True
except ImportError:
    ARGCOMPLETE_AVAILABLE = False

from .commands import (
    cmd_accounts,
    cmd_auth,
    cmd_doctor,
    cmd_login,
    cmd_positions,
    cmd_transactions,
)

try:
    __version__ = get_version("wealthsimple-cli-tools")
except PackageNotFoundError:
    __version__ = "0.0.0"

OUTPUT_ENV_VAR = "WEALTHSIMPLE_OUTPUT"

# Command aliases for ergonomics
COMMAND_ALIASES = {
    "acct": "accounts",
    "pos": "positions",
    "txn": "transactions",
    "dr": "doctor",
}


def resolve_output_mode(parsed_args) -> str:
    """Resolve output mode from args or environment."""
    if getattr(parsed_args, "json", False):
        return "json"
    if getattr(parsed_args, "text", False):
        return "text"
    env_output = os.getenv(OUTPUT_ENV_VAR, "").lower()
    if env_output in ("json", "text"):
        return env_output
    return "text"


def parse_date_arg(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from exc


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    common_parser = argparse.ArgumentParser(add_help=False)
    output_group = common_parser.add_mutually_exclusive_group()
    output_group.add_argument("--json", action="store_true", help="Output as JSON")
    output_group.add_argument("--text", action="store_true", help="Output as text")
    common_parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")

    remote_parser = argparse.ArgumentParser(add_help=False)
    remote_parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Fail if interactive login would be required",
    )

    parser = argparse.ArgumentParser(
        prog="wealthsimple",
        description="Wealthsimple CLI for read-only portfolio access",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Aliases:
  acct=accounts, pos=positions, txn=transactions, dr=doctor

ACCOUNT is an alias from config/accounts.json, an account id or an account number.

Examples:
  wealthsimple login
  wealthsimple accounts --json
  wealthsimple positions tfsa --date 2024-12-31
  wealthsimple txn card --since 2024-01-01
  wealthsimple dr              # doctor diagnostics
""",
    )
    parser.add_argument(
        "--version", "-V", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Portfolio commands
    subparsers.add_parser(
        "accounts", aliases=["acct"], help="List accounts", parents=[common_parser, remote_parser]
    )

    positions_parser = subparsers.add_parser(
        "positions", aliases=["pos"], help="Show positions", parents=[common_parser, remote_parser]
    )
    positions_parser.add_argument("account", metavar="ACCOUNT", help="Account alias, id or number")
    positions_parser.add_argument("--date", type=parse_date_arg, help="Positions as of YYYY-MM-DD")

    transactions_parser = subparsers.add_parser(
        "transactions", aliases=["txn"], help="Show transactions", parents=[common_parser, remote_parser]
    )
    transactions_parser.add_argument("account", metavar="ACCOUNT", help="Account alias, id or number")
    transactions_parser.add_argument("--since", type=parse_date_arg, help="Start date YYYY-MM-DD")

    # Admin commands
    subparsers.add_parser("auth", help="Check authentication", parents=[common_parser])
    login_parser = subparsers.add_parser("login", help="Log in to Wealthsimple", parents=[common_parser])
    login_parser.add_argument("--force", action="store_true", help="Discard the stored credential first")
    subparsers.add_parser(
        "doctor", aliases=["dr"], help="Run diagnostics", parents=[common_parser]
    )

    return parser


def main(args: list | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()

    # Enable shell completion if argcomplete is installed
    if ARGCOMPLETE_AVAILABLE:
        argcomplete.autocomplete(parser)

    parsed = parser.parse_args(args)

    # Resolve aliases
    if parsed.command in COMMAND_ALIASES:
        parsed.command = COMMAND_ALIASES[parsed.command]

    if not parsed.command:
        parser.print_help()
        sys.exit(0)

    if getattr(parsed, "verbose", False):
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    output_mode = resolve_output_mode(parsed)
    non_interactive = getattr(parsed, "non_interactive", False)

    # Route to command handlers
    if parsed.command == "accounts":
        cmd_accounts(output_mode=output_mode, non_interactive=non_interactive)
    elif parsed.command == "positions":
        cmd_positions(
            parsed.account,
            output_mode=output_mode,
            position_date=getattr(parsed, "date", None),
            non_interactive=non_interactive,
        )
    elif parsed.command == "transactions":
        cmd_transactions(
            parsed.account,
            output_mode=output_mode,
            since=getattr(parsed, "since", None),
            non_interactive=non_interactive,
        )
    elif parsed.command == "auth":
        cmd_auth(output_mode=output_mode)
    elif parsed.command == "login":
        cmd_login(output_mode=output_mode, force=getattr(parsed, "force", False))
    elif parsed.command == "doctor":
        cmd_doctor(output_mode=output_mode)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
