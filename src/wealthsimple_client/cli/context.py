"""
CLI context with client construction and shared state.

Every command builds one ``WealthsimpleClient`` and drives it with a single
``asyncio.run`` call, so the HTTP transport never outlives its event loop.
"""

import asyncio
import getpass
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

from config.account_config import account_config
from src.core.errors import ConfigError

from ..auth import LoginCredentials
from ..client import WealthsimpleClient
from ..models import Account
from ..settings import ApiConfig
from ..storage import JsonFileCredentialStorage

logger = logging.getLogger(__name__)

USERNAME_ENV = "WEALTHSIMPLE_USERNAME"

T = TypeVar("T")


def _ask(prompt: str) -> str:
    # Prompts go to stderr so --json output stays parseable
    sys.stderr.write(prompt)
    sys.stderr.flush()
    return sys.stdin.readline().strip()


def _prompt_blocking() -> LoginCredentials:
    default_username = os.getenv(USERNAME_ENV, "")
    suffix = f" [{default_username}]" if default_username else ""
    username = _ask(f"Wealthsimple username{suffix}: ") or default_username
    password = getpass.getpass("Password: ", stream=sys.stderr)
    otp = _ask("One-time password: ")
    if not username or not password or not otp:
        raise ConfigError("Username, password and one-time password are all required")
    return LoginCredentials(username, password, otp)


async def prompt_for_login() -> LoginCredentials:
    """Ask for credentials on the terminal."""
    return await asyncio.to_thread(_prompt_blocking)


async def refuse_login() -> LoginCredentials:
    raise ConfigError("Login required but running non-interactively. Run 'wealthsimple login' first.")


def create_client(*, non_interactive: bool = False) -> WealthsimpleClient:
    """Build a client using the configured token file and endpoints."""
    return WealthsimpleClient(
        refuse_login if non_interactive else prompt_for_login,
        storage=JsonFileCredentialStorage(),
        config=ApiConfig.from_env(),
    )


def run_with_client(
    operation: Callable[[WealthsimpleClient], Awaitable[T]],
    *,
    non_interactive: bool = False,
) -> T:
    """Authenticate, run ``operation`` and close the client."""

    async def runner() -> T:
        async with create_client(non_interactive=non_interactive) as client:
            await client.authenticate()
            return await operation(client)

    return asyncio.run(runner())


async def resolve_account(client: WealthsimpleClient, reference: str) -> Account:
    """Find an account by alias, id or account number."""
    account_id = account_config.resolve(reference)
    for account in await client.get_accounts():
        if account_id in (account.id, account.number):
            return account
    raise ConfigError(f"Unknown account: {reference}")
