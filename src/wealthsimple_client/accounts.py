"""Account list (REST ``accounts`` resource)."""

import logging
from typing import Any

import httpx

from src.core.decoding import require_envelope, require_str
from src.core.errors import InvalidFieldError

from .api import get_rest
from .auth import TokenManager
from .models import Account, AccountType
from .settings import ApiConfig

logger = logging.getLogger(__name__)


def account_from_rest(record: dict[str, Any]) -> Account:
    account_id = require_str(record, "id")
    type_name = require_str(record, "type")
    kind = require_str(record, "object")
    currency = require_str(record, "base_currency")
    number = require_str(record, "custodian_account_number")
    if kind != "account":
        raise InvalidFieldError("object", record)
    try:
        account_type = AccountType(type_name)
    except ValueError as e:
        raise InvalidFieldError("type", record) from e
    return Account(id=account_id, account_type=account_type, currency=currency, number=number)


async def get_accounts(http: httpx.AsyncClient, config: ApiConfig, tokens: TokenManager) -> list[Account]:
    """Fetch all accounts of the logged in user."""
    payload = await get_rest(http, config, tokens, "accounts", [])
    accounts = [account_from_rest(record) for record in require_envelope(payload, "account")]
    logger.info(f"Retrieved {len(accounts)} accounts")
    return accounts
