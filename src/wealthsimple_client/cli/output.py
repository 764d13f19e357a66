"""
Output formatting utilities for CLI.

Provides:
- JSON envelope builder
- Text formatters
- Centralized error handling with exit codes
- Optional rich terminal tables (if rich is installed)
"""

import io
import json
import sys
from datetime import datetime
from typing import Any

from src.core.errors import (
    ApiError,
    ConfigError,
    CredentialError,
    DownloaderError,
    HttpError,
    TokenError,
)

SCHEMA_VERSION = 1

# Optional rich support
try:
    from rich.console import Console
    from rich.table import Table
    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

LOGIN_HINT = "Run 'wealthsimple login' to authenticate."


def build_response(
    command: str,
    *,
    success: bool = True,
    data: dict[str, Any] | None = None,
    error: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build standardized JSON response envelope."""
    return {
        "schema_version": SCHEMA_VERSION,
        "command": command,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "success": success,
        "data": data,
        "error": error,
    }


def print_json_response(
    command: str,
    *,
    success: bool = True,
    data: dict[str, Any] | None = None,
    error: dict[str, Any] | None = None,
) -> None:
    """Print JSON response to stdout."""
    response = build_response(command, success=success, data=data, error=error)
    print(json.dumps(response, indent=2, default=str))


def print_error_json(command: str, error_type: str, message: str) -> None:
    """Print JSON error response."""
    print_json_response(
        command,
        success=False,
        error={"type": error_type, "message": message},
    )


def _report(output_mode: str, command: str, error_type: str, label: str, message: str) -> None:
    if output_mode == "json":
        print_error_json(command, error_type, message)
    else:
        print(f"{label}: {message}", file=sys.stderr)


def handle_cli_error(error: Exception, *, output_mode: str, command: str) -> None:
    """Centralized error handling for CLI commands.

    Maps exceptions to appropriate exit codes:
    - 1: User/config errors (ConfigError, InvalidParameterError, ...)
    - 2: Authentication and API errors
    """
    if isinstance(error, ConfigError):
        _report(output_mode, command, "ConfigError", "Configuration error", str(error))
        sys.exit(1)

    elif isinstance(error, (CredentialError, TokenError)):
        _report(output_mode, command, "AuthError", "Authentication error", f"{error}. {LOGIN_HINT}")
        sys.exit(2)

    elif isinstance(error, HttpError):
        message = f"API request failed ({error})."
        if error.status_code == 401:
            message += f" Token may have expired. {LOGIN_HINT}"
        elif error.status_code == 403:
            message += " Access denied."
        _report(output_mode, command, "APIError", "API Error", message)
        sys.exit(2)

    elif isinstance(error, ApiError):
        _report(output_mode, command, "APIError", "API Error", str(error))
        sys.exit(2)

    elif isinstance(error, DownloaderError):
        _report(output_mode, command, type(error).__name__, "Error", str(error))
        sys.exit(1)

    else:
        _report(output_mode, command, "UnexpectedError", "Unexpected error", str(error))
        sys.exit(1)


def format_header(title: str, width: int = 60) -> str:
    """Format a section header."""
    return f"\n{'=' * width}\n{title}\n{'=' * width}"


def format_table_row(label: str, value: Any, width: int = 20) -> str:
    """Format a label-value row."""
    return f"  {label:<{width}} {value}"


def format_money(amount: str, currency: str) -> str:
    """Format an API amount without converting it to float."""
    return f"{amount} {currency}"


def _render_table(title: str, columns: list[tuple[str, str]], rows: list[list[str]]) -> str:
    """Render rows with rich if available, else as aligned plain text.

    ``columns`` holds (header, justify) pairs.
    """
    if RICH_AVAILABLE:
        table = Table(title=title)
        for header, justify in columns:
            table.add_column(header, justify=justify)
        for row in rows:
            table.add_row(*row)
        buf = io.StringIO()
        Console(file=buf, force_terminal=True).print(table)
        return buf.getvalue()

    widths = [max([len(header)] + [len(row[i]) for row in rows]) for i, (header, _) in enumerate(columns)]
    lines = []
    for row in rows:
        cells = [
            cell.rjust(width) if justify == "right" else cell.ljust(width)
            for cell, width, (_, justify) in zip(row, widths, columns)
        ]
        lines.append("  " + "  ".join(cells).rstrip())
    return "\n".join(lines)


def create_positions_table(positions: list[dict[str, Any]]) -> str:
    """Create a formatted positions table."""
    if not positions:
        return "  No positions found."
    rows = [
        [
            pos["asset"]["symbol"],
            pos["asset"]["name"],
            pos["quantity"],
            format_money(pos["price"]["amount"], pos["price"]["currency"]),
            pos["position_date"][:10],
        ]
        for pos in positions
    ]
    columns = [("Symbol", "left"), ("Name", "left"), ("Quantity", "right"), ("Price", "right"), ("Date", "left")]
    return _render_table("Positions", columns, rows)


def create_transactions_table(transactions: list[dict[str, Any]]) -> str:
    """Create a formatted transactions table."""
    if not transactions:
        return "  No transactions found."
    rows = [
        [
            txn["process_date"][:10],
            txn["type"],
            txn["description"][:30],
            txn["symbol"],
            txn["quantity"],
            format_money(txn["net_cash"]["amount"], txn["net_cash"]["currency"]),
        ]
        for txn in transactions
    ]
    columns = [
        ("Date", "left"),
        ("Type", "left"),
        ("Description", "left"),
        ("Symbol", "left"),
        ("Quantity", "right"),
        ("Net cash", "right"),
    ]
    return _render_table("Transactions", columns, rows)
