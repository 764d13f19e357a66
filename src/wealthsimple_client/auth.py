"""
Token lifecycle for the Wealthsimple API.

The token manager hands out a currently valid bearer credential. It reuses the
credential it holds, refreshes it once expired, falls back to the stored
credential (validated against the server) and finally asks the caller for
username, password and one-time code.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

import httpx

from src.core.decoding import decode_json_response
from src.core.errors import ApiError, NoTokenError, TokenError

from .models import Credential
from .settings import ApiConfig
from .storage import CredentialStorage

logger = logging.getLogger(__name__)

# Client id of the Wealthsimple web app
CLIENT_ID = "4da53ac2b03225bed1550eba8e4611e086c7b905a3855e6ed12ea08c246758fa"
# The client id also allows write scopes; this library only ever reads
READ_ONLY_SCOPE = "invest.read mfda.read mercer.read trade.read"

KEY_ACCESS_TOKEN = "accessToken"
KEY_REFRESH_TOKEN = "refreshToken"
KEY_EXPIRY = "expiry"

OTP_HEADER = "x-wealthsimple-otp"


class LoginCredentials(NamedTuple):
    username: str
    password: str
    otp: str


AuthenticationCallback = Callable[[], Awaitable[LoginCredentials]]


class TokenState(Enum):
    ABSENT = "absent"
    VALIDATING = "validating"
    VALID = "valid"
    EXPIRED = "expired"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def read_stored_credential(storage: CredentialStorage) -> Credential | None:
    """Load a credential from storage; anything incomplete counts as absent."""
    access_token = storage.read(KEY_ACCESS_TOKEN)
    refresh_token = storage.read(KEY_REFRESH_TOKEN)
    expiry = storage.read(KEY_EXPIRY)
    if not access_token or not refresh_token or not expiry:
        return None
    try:
        return Credential.from_timestamp(access_token, refresh_token, float(expiry))
    except (ValueError, OverflowError, OSError):
        logger.warning(f"Ignoring stored credential with invalid expiry: {expiry!r}")
        return None


def save_credential(storage: CredentialStorage, credential: Credential) -> None:
    storage.save(credential.access_token, KEY_ACCESS_TOKEN)
    storage.save(credential.refresh_token, KEY_REFRESH_TOKEN)
    storage.save(str(credential.expiry_timestamp), KEY_EXPIRY)


def parse_token_response(payload: dict[str, Any]) -> Credential:
    """Build a credential from the ``oauth/token`` response."""
    access_token = payload.get("access_token")
    refresh_token = payload.get("refresh_token")
    expires_in = payload.get("expires_in")
    created_at = payload.get("created_at")
    if (
        not isinstance(access_token, str)
        or not isinstance(refresh_token, str)
        or not isinstance(expires_in, int)
        or isinstance(expires_in, bool)
        or not isinstance(created_at, int)
        or isinstance(created_at, bool)
    ):
        raise TokenError(f"Token response is missing expected parameters: {sorted(payload)}")
    return Credential.from_timestamp(access_token, refresh_token, created_at + expires_in)


class TokenManager:
    """
    Produces a valid credential for every API call.

    Usage:
        manager = TokenManager(http, storage, prompt_for_login, ApiConfig())
        await manager.authenticate()
        headers = manager.authorize({"Content-Type": "application/json"})

    State transitions run under one lock, so concurrent ``authenticate()``
    calls share a single refresh or login.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        storage: CredentialStorage,
        authentication_callback: AuthenticationCallback,
        config: ApiConfig | None = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self._http = http
        self._storage = storage
        self._authentication_callback = authentication_callback
        self._config = config or ApiConfig()
        self._now = now
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()
        self.state = TokenState.ABSENT

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def _set(self, credential: Credential | None, state: TokenState) -> None:
        self._credential = credential
        self.state = state

    async def authenticate(self) -> Credential:
        """Make sure a valid credential is held, logging in if required.

        Raises:
            TokenError: If the interactive login fails
        """
        async with self._lock:
            if self._credential is not None:
                try:
                    credential = await self._refresh_if_needed(self._credential)
                    self._set(credential, TokenState.VALID)
                    return credential
                except TokenError as e:
                    logger.warning(f"Token refresh failed, logging in again: {e}")
                    self._set(None, TokenState.ABSENT)
            else:
                stored = await self._load_from_storage()
                if stored is not None:
                    self._set(stored, TokenState.VALID)
                    return stored

            credential = await self._login()
            self._set(credential, TokenState.VALID)
            logger.info("Wealthsimple login successful")
            return credential

    async def ensure_valid(self) -> Credential:
        """Refresh the held credential if it expired; never prompts.

        Raises:
            NoTokenError: If no credential is held
            TokenError: If the refresh fails (the credential is dropped)
        """
        async with self._lock:
            if self._credential is None:
                raise NoTokenError()
            try:
                credential = await self._refresh_if_needed(self._credential)
            except TokenError:
                self._set(None, TokenState.ABSENT)
                raise
            self._set(credential, TokenState.VALID)
            return credential

    def authorize(self, headers: dict[str, str] | None = None) -> dict[str, str]:
        """Return ``headers`` with the bearer token attached.

        Raises:
            NoTokenError: If no credential is held
        """
        if self._credential is None:
            raise NoTokenError()
        authorized = dict(headers or {})
        authorized["Authorization"] = f"Bearer {self._credential.access_token}"
        return authorized

    def clear(self) -> None:
        """Forget the in-memory credential so the next call re-authenticates."""
        self._set(None, TokenState.ABSENT)

    async def _load_from_storage(self) -> Credential | None:
        candidate = read_stored_credential(self._storage)
        if candidate is None:
            return None
        try:
            candidate = await self._refresh_if_needed(candidate)
        except TokenError as e:
            logger.warning(f"Stored credential could not be refreshed: {e}")
            return None
        self.state = TokenState.VALIDATING
        if await self._validate(candidate):
            return candidate
        logger.warning("Stored credential was rejected by the server")
        self.state = TokenState.ABSENT
        return None

    async def _refresh_if_needed(self, credential: Credential) -> Credential:
        if not credential.needs_refresh(self._now()):
            return credential
        self.state = TokenState.EXPIRED
        logger.info("Access token expired, refreshing")
        return await self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token,
                "client_id": CLIENT_ID,
            }
        )

    async def _login(self) -> Credential:
        self.state = TokenState.ABSENT
        login = await self._authentication_callback()
        return await self._request_token(
            {
                "grant_type": "password",
                "username": login.username,
                "password": login.password,
                "scope": READ_ONLY_SCOPE,
                "client_id": CLIENT_ID,
            },
            headers={OTP_HEADER: login.otp},
        )

    async def _validate(self, credential: Credential) -> bool:
        try:
            response = await self._http.get(
                self._config.url("oauth/token/info"),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {credential.access_token}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Token validation request failed: {e}")
            return False
        return response.status_code == 200

    async def _request_token(self, body: dict[str, str], headers: dict[str, str] | None = None) -> Credential:
        try:
            response = await self._http.post(
                self._config.url("oauth/token"),
                json=body,
                headers={"Content-Type": "application/json", **(headers or {})},
            )
            payload = decode_json_response(response)
        except httpx.HTTPError as e:
            raise TokenError(f"An HTTP error occurred: {e}") from e
        except ApiError as e:
            raise TokenError(str(e)) from e

        credential = parse_token_response(payload)
        save_credential(self._storage, credential)
        logger.info("Saved new Wealthsimple credential")
        return credential


def stored_token_status(storage: CredentialStorage, now: Callable[[], datetime] = utcnow) -> dict[str, Any]:
    """Describe the stored credential for status reporting.

    Returns dict with:
        exists: bool - whether a complete credential is stored
        valid: bool - whether the access token is not expired
        expires: str - ISO timestamp of access token expiry
        expires_in_minutes: float - minutes until expiry
        warning: str|None - hint for the user
    """
    stored = read_stored_credential(storage)
    if stored is None:
        return {
            "exists": False,
            "valid": False,
            "warning": "No stored credential. Run 'wealthsimple login' to authenticate.",
        }
    current = now()
    valid = not stored.needs_refresh(current)
    remaining = (stored.expiry - current).total_seconds() / 60
    return {
        "exists": True,
        "valid": valid,
        "expires": stored.expiry.isoformat(),
        "expires_in_minutes": round(remaining, 1) if valid else 0,
        "warning": None if valid else "Access token expired. It is refreshed on the next request.",
    }
