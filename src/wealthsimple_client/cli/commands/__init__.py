"""CLI command modules."""

from .admin import cmd_auth, cmd_doctor, cmd_login
from .portfolio import cmd_accounts, cmd_positions, cmd_transactions

__all__ = [
    # Portfolio
    "cmd_accounts",
    "cmd_positions",
    "cmd_transactions",
    # Admin
    "cmd_auth",
    "cmd_login",
    "cmd_doctor",
]
