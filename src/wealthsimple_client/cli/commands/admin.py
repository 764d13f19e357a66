"""
Admin commands: auth, login, doctor.
"""

from config.account_config import ACCOUNTS_FILE, account_config

from ...auth import stored_token_status
from ...settings import ApiConfig, resolve_data_dir, resolve_token_path
from ...storage import JsonFileCredentialStorage
from ..context import run_with_client
from ..output import format_header, format_table_row, handle_cli_error, print_json_response


def cmd_auth(*, output_mode: str = "text") -> None:
    """Check authentication status."""
    command = "auth"
    try:
        info = stored_token_status(JsonFileCredentialStorage())

        if output_mode == "json":
            print_json_response(command, data={"token": info})
            return

        print(format_header("AUTHENTICATION STATUS"))
        print(f"  Token exists: {info.get('exists', False)}")
        print(f"  Token valid:  {info.get('valid', False)}")

        if info.get("expires"):
            print(f"  Expires at:   {info['expires']}")

        if info.get("warning"):
            print(f"  Warning:      {info['warning']}")

        print()

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)


def cmd_login(*, output_mode: str = "text", force: bool = False) -> None:
    """Authenticate interactively and store the credential."""
    command = "login"
    try:
        storage = JsonFileCredentialStorage()
        if force:
            storage.delete()
        run_with_client(lambda client: client.authenticate())
        info = stored_token_status(storage)

        if output_mode == "json":
            print_json_response(command, data={"token": info})
            return

        print("Authenticated with Wealthsimple.")
        if info.get("expires"):
            print(f"  Access token expires at {info['expires']}")

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)


def cmd_doctor(*, output_mode: str = "text") -> None:
    """Run diagnostics for configuration and auth."""
    command = "doctor"
    try:
        data_dir = resolve_data_dir()
        token_path = resolve_token_path()
        api = ApiConfig.from_env()
        token = stored_token_status(JsonFileCredentialStorage(token_path))
        accounts = account_config.get_all_accounts()

        warnings: list[str] = []
        if not token.get("exists", False):
            warnings.append("token_missing")
        elif not token.get("valid", False):
            warnings.append("token_expired")
        if not accounts:
            warnings.append("accounts_config_missing")

        data = {
            "data_dir": str(data_dir),
            "api": {"base_url": api.base_url, "graphql_url": api.graphql_url},
            "token_path": str(token_path),
            "token": token,
            "accounts": {
                "configured": bool(accounts),
                "count": len(accounts),
                "path": str(ACCOUNTS_FILE),
            },
            "warnings": warnings,
        }

        if output_mode == "json":
            print_json_response(command, data=data)
            return

        print(format_header("WEALTHSIMPLE CLI DOCTOR"))
        print(format_table_row("Data directory:", data_dir))
        print(format_table_row("REST API:", api.base_url))
        print(format_table_row("GraphQL API:", api.graphql_url))

        print("\n  Token:")
        print(
            f"    {'present' if token.get('exists') else 'missing'}"
            f" ({'valid' if token.get('valid') else 'EXPIRED'})"
        )
        if token.get("expires_in_minutes"):
            print(f"    Expires: {token['expires_in_minutes']:.0f} minutes remaining")
        print(f"    Token path: {token_path}")

        print("\n  Accounts:")
        print(f"    Configured: {'yes' if accounts else 'no'} ({len(accounts)} aliases)")
        print(f"    Config path: {ACCOUNTS_FILE}")

        if warnings:
            print("\n  Warnings:")
            for warning in warnings:
                print(f"    - {warning}")

        print()

    except Exception as exc:
        handle_cli_error(exc, output_mode=output_mode, command=command)
