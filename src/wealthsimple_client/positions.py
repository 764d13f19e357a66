"""
Holdings of an account.

Investment accounts list their positions through the REST ``positions``
resource. Credit card accounts have no positions; the current card balance
is reported as a single (negative) cash position instead.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

import httpx

from src.core.dates import format_rest_date, parse_rest_date
from src.core.decoding import require_dict, require_envelope, require_graphql_data, require_money, require_str
from src.core.errors import InvalidFieldError, InvalidParameterError

from .api import get_rest, post_graphql
from .auth import TokenManager, utcnow
from .graphql import credit_card_summary_request
from .models import AccountLike, AccountType, Asset, AssetType, Position, negate_amount
from .settings import ApiConfig

logger = logging.getLogger(__name__)

REST_PAGE_LIMIT = "250"


def asset_from_rest(record: dict[str, Any]) -> Asset:
    security_id = require_str(record, "security_id")
    symbol = require_str(record, "symbol")
    currency = require_str(record, "currency")
    name = require_str(record, "name")
    type_name = require_str(record, "type")
    try:
        asset_type = AssetType(type_name)
    except ValueError as e:
        raise InvalidFieldError("type", record) from e
    return Asset(symbol=symbol, name=name, currency=currency, type=asset_type, id=security_id)


def position_from_rest(record: dict[str, Any]) -> Position:
    quantity = require_str(record, "quantity")
    account_id = require_str(record, "account_id")
    asset = require_dict(record, "asset")
    price_amount, price_currency = require_money(record, "market_price")
    position_date = require_str(record, "position_date")
    if require_str(record, "object") != "position":
        raise InvalidFieldError("object", record)
    try:
        parsed_date = parse_rest_date(position_date)
    except ValueError as e:
        raise InvalidFieldError("position_date", record) from e
    return Position(
        account_id=account_id,
        asset=asset_from_rest(asset),
        quantity=quantity,
        price_amount=price_amount,
        price_currency=price_currency,
        position_date=parsed_date,
    )


async def _credit_card_positions(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    account: AccountLike,
    now: Callable[[], datetime],
) -> list[Position]:
    payload = await post_graphql(http, config, tokens, credit_card_summary_request(account.id))
    card = require_dict(require_graphql_data(payload), "creditCardAccount")
    current = require_str(require_dict(card, "balance"), "current")
    # An outstanding card balance is money owed
    return [
        Position(
            account_id=account.id,
            asset=Asset.for_currency(account.currency),
            quantity=negate_amount(current),
            price_amount="1",
            price_currency=account.currency,
            position_date=now(),
        )
    ]


async def get_positions(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    account: AccountLike,
    position_date: date | datetime | None = None,
    now: Callable[[], datetime] = utcnow,
) -> list[Position]:
    """Fetch the positions of ``account``, optionally as of ``position_date``.

    Raises:
        InvalidParameterError: If a date is given for a credit card account
        CredentialError: If no credential is held
        ApiError: If the request or decode fails
    """
    if account.account_type == AccountType.CREDIT_CARD:
        if position_date is not None:
            raise InvalidParameterError("Date parameter is not supported for credit card accounts")
        return await _credit_card_positions(http, config, tokens, account, now)

    params = [("account_id", account.id), ("limit", REST_PAGE_LIMIT)]
    if position_date is not None:
        params.append(("date", format_rest_date(position_date)))
    payload = await get_rest(http, config, tokens, "positions", params)
    positions = [position_from_rest(record) for record in require_envelope(payload, "position")]
    logger.info(f"Retrieved {len(positions)} positions for account {account.id}")
    return positions
