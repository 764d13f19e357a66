"""Shared pytest fixtures for test suite"""

import asyncio
import json
import os
import subprocess
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TypeVar

import httpx
import pytest

from src.wealthsimple_client.auth import LoginCredentials, TokenManager
from src.wealthsimple_client.models import Account, AccountType
from src.wealthsimple_client.settings import ApiConfig
from src.wealthsimple_client.storage import MemoryCredentialStorage

T = TypeVar("T")

# JSON Schema for CLI response envelope
ENVELOPE_SCHEMA = {
    "type": "object",
    "required": ["schema_version", "command", "timestamp", "success"],
    "properties": {
        "schema_version": {"type": "integer", "const": 1},
        "command": {"type": "string", "minLength": 1},
        "timestamp": {"type": "string"},
        "success": {"type": "boolean"},
        "data": {"type": ["object", "null"]},
        "error": {"type": ["object", "null"]},
    },
    "additionalProperties": False,
}

TEST_CONFIG = ApiConfig(base_url="https://api.test/v1/", graphql_url="https://my.test/graphql")
NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

TFSA = Account(id="tfsa-abc123", account_type=AccountType.TFSA, currency="CAD", number="12345678")
CREDIT_CARD = Account(
    id="ca-credit-card-abc123", account_type=AccountType.CREDIT_CARD, currency="CAD", number="99999"
)


@dataclass
class CLIResult:
    """Result from running the CLI."""

    exit_code: int
    stdout: str
    stderr: str
    json_data: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def get_data(self) -> dict[str, Any]:
        """Get the 'data' field from JSON response."""
        if self.json_data is None:
            raise ValueError("No JSON data available - did you use --json flag?")
        return self.json_data.get("data", {})


def run_cli(*args: str, timeout: int = 30, env: dict[str, str] | None = None) -> CLIResult:
    """Run the wealthsimple CLI with given arguments.

    Args:
        *args: CLI arguments (e.g., "accounts", "--json")
        timeout: Command timeout in seconds
        env: Full process environment (defaults to the current one)

    Returns:
        CLIResult with exit_code, stdout, stderr, and parsed json_data
    """
    cmd = [sys.executable, "-m", "src.wealthsimple_client.cli", *args]

    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=Path(__file__).parent.parent,
        env=env,
        stdin=subprocess.DEVNULL,
    )

    json_data = None
    if "--json" in args:
        try:
            json_data = json.loads(result.stdout)
        except json.JSONDecodeError:
            pass

    return CLIResult(
        exit_code=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        json_data=json_data,
    )


def validate_envelope(data: dict[str, Any]) -> list[str]:
    """Validate JSON response against envelope schema.

    Returns list of validation errors (empty if valid).
    """
    errors = []

    # Check required fields
    for required in ENVELOPE_SCHEMA["required"]:
        if required not in data:
            errors.append(f"Missing required field: {required}")

    if "schema_version" in data:
        if data["schema_version"] != 1:
            errors.append(f"Invalid schema_version: {data['schema_version']} (expected 1)")

    if "command" in data:
        if not isinstance(data["command"], str) or not data["command"]:
            errors.append(f"Invalid command: {data['command']}")

    if "success" in data:
        if not isinstance(data["success"], bool):
            errors.append(f"Invalid success type: {type(data['success'])}")

    # Check no extra fields
    allowed = set(ENVELOPE_SCHEMA["properties"].keys())
    extra = set(data.keys()) - allowed
    if extra:
        errors.append(f"Unexpected fields: {extra}")

    return errors


def assert_json_success(result: CLIResult, command: str | None = None) -> dict[str, Any]:
    """Assert CLI result is successful JSON response."""
    assert result.json_data is not None, f"Expected JSON output, got: {result.stdout[:200]}"

    errors = validate_envelope(result.json_data)
    assert not errors, f"Envelope validation failed: {errors}"

    assert result.json_data["success"] is True, f"Expected success=True: {result.json_data}"

    if command:
        assert result.json_data["command"] == command

    return result.json_data


def assert_json_error(
    result: CLIResult, expected_type: str | None = None
) -> dict[str, Any]:
    """Assert CLI result is an error JSON response.

    Args:
        result: CLIResult from run_cli()
        expected_type: Expected error type (e.g., "ConfigError")

    Returns:
        The error dict from the response
    """
    assert result.json_data is not None, f"Expected JSON output, got: {result.stdout[:200]}"

    errors = validate_envelope(result.json_data)
    assert not errors, f"Envelope validation failed: {errors}"

    assert result.json_data["success"] is False, f"Expected success=False: {result.json_data}"
    assert result.json_data.get("error") is not None, "Expected error field"

    if expected_type:
        assert result.json_data["error"].get("type") == expected_type

    return result.json_data["error"]


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: dict[str, list[str]]
    headers: httpx.Headers
    body: Any

    @property
    def operation(self) -> str | None:
        return self.body.get("operationName") if isinstance(self.body, dict) else None


@dataclass
class FakeWealthsimple:
    """In-process stand-in for the REST and GraphQL endpoints.

    Responses are queued per (method, path, GraphQL operation) and served in
    order; an unexpected request fails the test.
    """

    requests: list[RecordedRequest] = field(default_factory=list)
    routes: dict[tuple[str, str, str | None], list[httpx.Response | Exception]] = field(default_factory=dict)

    def add(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json_body: Any = None,
        content: bytes | None = None,
        operation: str | None = None,
        error: Exception | None = None,
    ) -> None:
        if error is not None:
            response: httpx.Response | Exception = error
        elif content is not None:
            response = httpx.Response(status, content=content)
        elif json_body is not None:
            response = httpx.Response(status, json=json_body)
        else:
            response = httpx.Response(status)
        self.routes.setdefault((method, path, operation), []).append(response)

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        params: dict[str, list[str]] = {}
        for key, value in request.url.params.multi_items():
            params.setdefault(key, []).append(value)
        recorded = RecordedRequest(request.method, request.url.path, params, request.headers, body)
        self.requests.append(recorded)

        queue = self.routes.get((request.method, request.url.path, recorded.operation))
        if not queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.url} {recorded.operation}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))

    def calls(self, path: str, operation: str | None = None) -> list[RecordedRequest]:
        return [r for r in self.requests if r.path == path and (operation is None or r.operation == operation)]


class LoginPrompt:
    """Authentication callback that counts how often it was awaited."""

    def __init__(self, username: str = "user@example.com", password: str = "secret", otp: str = "123456"):
        self.credentials = LoginCredentials(username, password, otp)
        self.calls = 0

    async def __call__(self) -> LoginCredentials:
        self.calls += 1
        return self.credentials


def token_response(
    access_token: str = "access-new",
    refresh_token: str = "refresh-new",
    created_at: int | None = None,
    expires_in: int = 1800,
) -> dict[str, Any]:
    """Body of a successful oauth/token response."""
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "created_at": int(NOW.timestamp()) if created_at is None else created_at,
        "expires_in": expires_in,
        "token_type": "Bearer",
    }


@pytest.fixture
def fake_api():
    """Fixture providing the fake Wealthsimple server."""
    return FakeWealthsimple()


@pytest.fixture
def login_prompt():
    return LoginPrompt()


@pytest.fixture
def cli_runner():
    """Fixture providing CLI runner function."""
    return run_cli


@pytest.fixture
def cli_env(tmp_path):
    """Environment isolating the CLI from the user's token file."""
    env = dict(os.environ)
    env["WEALTHSIMPLE_CLI_DATA_DIR"] = str(tmp_path / "data")
    env.pop("WEALTHSIMPLE_TOKEN_PATH", None)
    env.pop("WEALTHSIMPLE_OUTPUT", None)
    return env


@pytest.fixture
def mock_rest_transaction():
    """One record of the REST transactions envelope"""
    return {
        "object": "transaction",
        "id": "transaction-1",
        "account_id": TFSA.id,
        "type": "buy",
        "description": "Buy 10 XGRO",
        "symbol": "XGRO",
        "quantity": "10.0",
        "market_price": {"amount": "25.010", "currency": "CAD"},
        "market_value": {"amount": "250.10", "currency": "CAD"},
        "net_cash": {"amount": "-250.10", "currency": "CAD"},
        "process_date": "2024-02-12",
        "effective_date": "2024-02-14",
        "fx_rate": "1.0",
    }


@pytest.fixture
def temp_tokens_dir(tmp_path):
    """Create temporary tokens directory for tests"""
    tokens_dir = tmp_path / "tokens"
    tokens_dir.mkdir()
    return tokens_dir


def stored_tokens(access="t1", refresh="r1", expiry: datetime | None = None) -> MemoryCredentialStorage:
    """Credential storage pre-filled with a credential valid for an hour."""
    expiry = expiry or NOW + timedelta(hours=1)
    return MemoryCredentialStorage(
        {"accessToken": access, "refreshToken": refresh, "expiry": str(expiry.timestamp())}
    )


async def authenticated_tokens(fake_api: FakeWealthsimple, http: httpx.AsyncClient) -> TokenManager:
    """Token manager holding t1, after one token/info validation call."""
    fake_api.add("GET", "/v1/oauth/token/info")
    tokens = TokenManager(http, stored_tokens(), LoginPrompt(), TEST_CONFIG, now=lambda: NOW)
    await tokens.authenticate()
    return tokens


def run_authenticated(fake_api: FakeWealthsimple, operation: Callable[[httpx.AsyncClient, TokenManager], Awaitable[T]]) -> T:
    """Run ``operation(http, tokens)`` against the fake server with a held credential."""

    async def scenario():
        async with fake_api.client() as http:
            tokens = await authenticated_tokens(fake_api, http)
            return await operation(http, tokens)

    return asyncio.run(scenario())


def activity_node(
    transaction_id: str,
    amount: str = "12.34",
    amount_sign: str = "negative",
    status: str = "settled",
    sub_type: str = "PURCHASE",
    occurred_at: str = "2024-02-10T15:30:00.000000-05:00",
    merchant: str | None = "Corner Coffee",
) -> dict[str, Any]:
    """One node of the GraphQL activity feed"""
    return {
        "amount": amount,
        "amountSign": amount_sign,
        "currency": "CAD",
        "externalCanonicalId": transaction_id,
        "occurredAt": occurred_at,
        "spendMerchant": merchant,
        "status": status,
        "subType": sub_type,
        "accountId": CREDIT_CARD.id,
    }


def activity_page(nodes: list[dict[str, Any]], has_next_page: bool = False, end_cursor: str | None = None) -> dict[str, Any]:
    return {
        "data": {
            "activityFeedItems": {
                "edges": [{"node": node} for node in nodes],
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
            }
        }
    }


def spend_detail(
    settled_at: str | None = "2024-02-12 10:00:00 EST",
    is_foreign: bool = False,
    foreign_amount: str | None = None,
    foreign_currency: str | None = None,
    rate: str | None = None,
) -> dict[str, Any]:
    return {
        "isForeign": is_foreign,
        "foreignAmount": foreign_amount,
        "foreignCurrency": foreign_currency,
        "foreignExchangeRate": rate,
        "settledAt": settled_at,
    }


def spend_details(*details: dict[str, Any]) -> dict[str, Any]:
    """Spend details response with aliases a0..aN"""
    return {"data": {f"a{index}": detail for index, detail in enumerate(details)}}
