"""
Portfolio commands: accounts, positions, transactions.
"""

from datetime import date
from typing import Any

from config.account_config import account_config

from ...client import WealthsimpleClient
from ..context import resolve_account, run_with_client
from ..output import (
    create_positions_table,
    create_transactions_table,
    format_header,
    handle_cli_error,
    print_json_response,
)


def get_account_display_name(account_id: str, number: str) -> str:
    """Get friendly display name for account (centralized)."""
    return account_config.get_account_label(account_id, number)


def sanitize_account(account: dict[str, Any]) -> dict[str, Any]:
    """Replace the full account number by its last four digits."""
    entry = dict(account)
    number = entry.pop("number", "") or ""
    entry["label"] = get_account_display_name(entry["id"], number)
    entry["number_last4"] = number[-4:] if number else None
    return entry


def cmd_accounts(*, output_mode: str = "text", non_interactive: bool = False) -> None:
    """List the accounts of the logged in user."""
    command = "accounts"
    try:
        accounts = run_with_client(lambda client: client.get_accounts(), non_interactive=non_interactive)
        data = {"accounts": [sanitize_account(account.to_dict()) for account in accounts]}

        if output_mode == "json":
            print_json_response(command, data=data)
            return

        print(format_header("ACCOUNTS"))
        if not accounts:
            print("  No accounts found.")
        for entry in data["accounts"]:
            print(f"  {entry['label']:28s} {entry['type']:26s} {entry['currency']:4s} {entry['id']}")
        print()

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)


def cmd_positions(
    account_ref: str,
    *,
    output_mode: str = "text",
    position_date: date | None = None,
    non_interactive: bool = False,
) -> None:
    """Show positions of one account."""
    command = "positions"
    try:

        async def fetch(client: WealthsimpleClient):
            account = await resolve_account(client, account_ref)
            return account, await client.get_positions(account, position_date)

        account, positions = run_with_client(fetch, non_interactive=non_interactive)
        data = {
            "account": sanitize_account(account.to_dict()),
            "positions": [position.to_dict() for position in positions],
        }

        if output_mode == "json":
            print_json_response(command, data=data)
            return

        print(format_header(f"POSITIONS - {data['account']['label']}"))
        print(create_positions_table(data["positions"]))
        print()

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)


def cmd_transactions(
    account_ref: str,
    *,
    output_mode: str = "text",
    since: date | None = None,
    non_interactive: bool = False,
) -> None:
    """Show transactions of one account."""
    command = "transactions"
    try:

        async def fetch(client: WealthsimpleClient):
            account = await resolve_account(client, account_ref)
            return account, await client.get_transactions(account, since)

        account, transactions = run_with_client(fetch, non_interactive=non_interactive)
        data = {
            "account": sanitize_account(account.to_dict()),
            "since": since.isoformat() if since else None,
            "count": len(transactions),
            "transactions": [transaction.to_dict() for transaction in transactions],
        }

        if output_mode == "json":
            print_json_response(command, data=data)
            return

        title = f"TRANSACTIONS - {data['account']['label']}"
        if since:
            title += f" since {since.isoformat()}"
        print(format_header(title))
        print(create_transactions_table(data["transactions"]))
        print(f"\n  {len(transactions)} transactions")
        print()

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)
