"""
Wealthsimple client facade.

Bundles the token manager and the resource modules behind one object:
- Authentication with stored, refreshed or interactive credentials
- Accounts, positions and transactions
- Credential reset after any token failure
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import TypeVar

import httpx

from src.core.errors import CredentialError

from .accounts import get_accounts
from .auth import AuthenticationCallback, TokenManager, utcnow
from .models import Account, AccountLike, Credential, Position, Transaction
from .positions import get_positions
from .settings import ApiConfig
from .storage import CredentialStorage, JsonFileCredentialStorage
from .transactions import get_transactions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WealthsimpleClient:
    """
    Read-only client for the Wealthsimple web API.

    Usage:
        async with WealthsimpleClient(prompt_for_login) as client:
            await client.authenticate()
            for account in await client.get_accounts():
                transactions = await client.get_transactions(account, since)
    """

    def __init__(
        self,
        authentication_callback: AuthenticationCallback,
        storage: CredentialStorage | None = None,
        config: ApiConfig | None = None,
        http: httpx.AsyncClient | None = None,
        now: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the client.

        Args:
            authentication_callback: Coroutine function returning LoginCredentials,
                awaited only when no usable credential exists
            storage: Credential store (defaults to the JSON token file)
            config: API endpoints (defaults to environment configuration)
            http: Transport; when omitted the client creates and owns one
            now: Clock used for expiry checks and date windows
        """
        self.config = config or ApiConfig.from_env()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=self.config.timeout)
        self._now = now
        self.tokens = TokenManager(
            self._http,
            storage if storage is not None else JsonFileCredentialStorage(),
            authentication_callback,
            self.config,
            now=now,
        )

    async def __aenter__(self) -> "WealthsimpleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def authenticate(self) -> Credential:
        """Make sure a valid credential is available (may prompt via the callback)."""
        return await self.tokens.authenticate()

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except CredentialError:
            logger.warning("Credential error, clearing token")
            self.tokens.clear()
            raise

    async def get_accounts(self) -> list[Account]:
        return await self._call(get_accounts(self._http, self.config, self.tokens))

    async def get_positions(
        self, account: AccountLike, position_date: date | datetime | None = None
    ) -> list[Position]:
        return await self._call(
            get_positions(self._http, self.config, self.tokens, account, position_date, now=self._now)
        )

    async def get_transactions(
        self, account: AccountLike, start_date: date | datetime | None = None
    ) -> list[Transaction]:
        """Transactions of ``account`` since ``start_date`` (all available when omitted)."""
        return await self._call(
            get_transactions(self._http, self.config, self.tokens, account, start_date, now=self._now)
        )
