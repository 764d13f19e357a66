"""
Transaction retrieval.

Investment accounts are read from the REST ``transactions`` resource in one
request. Credit card accounts are read from the GraphQL activity feed page by
page; every page is followed by one spend details query that adds the
foreign exchange and settlement fields the feed does not carry.
"""

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

import httpx

from src.core.dates import (
    format_graphql_date,
    format_rest_date,
    parse_activity_timestamp,
    parse_rest_date,
    parse_settled_at,
)
from src.core.decoding import (
    optional_str,
    require_bool,
    require_dict,
    require_envelope,
    require_graphql_data,
    require_list,
    require_money,
    require_str,
)
from src.core.errors import InvalidFieldError, MissingFieldError

from .api import get_rest, post_graphql
from .auth import TokenManager, utcnow
from .graphql import SPEND_ALIAS_PREFIX, activity_feed_request, spend_details_request
from .models import AccountLike, AccountType, Transaction, TransactionType, camel_case, negate_amount
from .settings import ApiConfig

logger = logging.getLogger(__name__)

REST_PAGE_LIMIT = "250"
END_DATE_OFFSET = timedelta(days=7)
SETTLED_STATUS = "settled"
NEGATIVE_SIGN = "negative"

_ALIAS_PATTERN = re.compile(rf"^{SPEND_ALIAS_PREFIX}(\d+)$")


def _parse_field(payload: dict[str, Any], key: str, parser: Callable[[str], Any]) -> Any:
    """Apply ``parser`` to the text at ``key``; unparsable text is an invalid field."""
    value = require_str(payload, key)
    try:
        return parser(value)
    except ValueError as e:
        raise InvalidFieldError(key, payload) from e


def transaction_from_rest(record: dict[str, Any]) -> Transaction:
    """Decode one record of the REST ``transactions`` envelope."""
    description = require_str(record, "description")
    transaction_id = require_str(record, "id")
    account_id = require_str(record, "account_id")
    symbol = require_str(record, "symbol")
    quantity = require_str(record, "quantity")
    price_amount, price_currency = require_money(record, "market_price")
    value_amount, value_currency = require_money(record, "market_value")
    net_cash_amount, net_cash_currency = require_money(record, "net_cash")
    fx_rate = require_str(record, "fx_rate")
    if require_str(record, "object") != "transaction":
        raise InvalidFieldError("object", record)

    return Transaction(
        id=transaction_id,
        account_id=account_id,
        transaction_type=_parse_field(record, "type", lambda value: TransactionType(camel_case(value))),
        description=description,
        symbol=symbol,
        quantity=quantity,
        market_price_amount=price_amount,
        market_price_currency=price_currency,
        market_value_amount=value_amount,
        market_value_currency=value_currency,
        net_cash_amount=net_cash_amount,
        net_cash_currency=net_cash_currency,
        fx_rate=fx_rate,
        effective_date=_parse_field(record, "effective_date", parse_rest_date),
        process_date=_parse_field(record, "process_date", parse_rest_date),
    )


def transaction_from_activity(node: dict[str, Any]) -> Transaction:
    """Decode an activity feed node merged with its spend details."""
    amount = require_str(node, "amount")
    amount_sign = require_str(node, "amountSign")
    currency = require_str(node, "currency")
    transaction_id = require_str(node, "externalCanonicalId")
    status = require_str(node, "status")
    account_id = require_str(node, "accountId")
    occurred_at = _parse_field(node, "occurredAt", parse_activity_timestamp)
    transaction_type = _parse_field(node, "subType", lambda value: TransactionType(camel_case(value.lower())))

    if status == SETTLED_STATUS:
        effective_date = _parse_field(node, "settledAt", parse_settled_at)
    else:
        effective_date = occurred_at

    is_foreign = node.get("isForeign") is True
    if is_foreign:
        fx_rate = require_str(node, "foreignExchangeRate")
        symbol = require_str(node, "foreignCurrency")
        quantity = require_str(node, "foreignAmount")
    else:
        fx_rate = "1.0"
        symbol = currency
        quantity = amount

    return Transaction(
        id=transaction_id,
        account_id=account_id,
        transaction_type=transaction_type,
        description=optional_str(node, "spendMerchant", ""),
        symbol=symbol,
        quantity=quantity,
        market_price_amount="1.0",
        market_price_currency=symbol,
        market_value_amount=quantity,
        market_value_currency=symbol,
        net_cash_amount=negate_amount(amount) if amount_sign == NEGATIVE_SIGN else amount,
        net_cash_currency=currency,
        fx_rate=fx_rate,
        effective_date=effective_date,
        process_date=occurred_at,
    )


def merge_spend_details(nodes: list[dict[str, Any]], payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Merge the aliased spend details back into ``nodes`` by position.

    Raises:
        MissingFieldError: If an alias is missing or cannot be mapped to a node;
            the error carries the enrichment payload
    """
    data = require_graphql_data(payload)
    details: dict[int, dict[str, Any]] = {}
    for alias, value in data.items():
        match = _ALIAS_PATTERN.match(alias)
        if match is None or int(match.group(1)) >= len(nodes) or not isinstance(value, dict):
            raise MissingFieldError(alias, payload)
        details[int(match.group(1))] = value

    merged = []
    for index, node in enumerate(nodes):
        if index not in details:
            raise MissingFieldError(f"{SPEND_ALIAS_PREFIX}{index}", payload)
        merged.append({**node, **details[index]})
    return merged


def _activity_page(payload: dict[str, Any]) -> tuple[list[dict[str, Any]], bool, str | None]:
    feed = require_dict(require_graphql_data(payload), "activityFeedItems")
    page_info = require_dict(feed, "pageInfo")
    has_next_page = require_bool(page_info, "hasNextPage")
    end_cursor = optional_str(page_info, "endCursor")
    if has_next_page and end_cursor is None:
        raise MissingFieldError("endCursor", page_info)
    nodes = [require_dict(edge, "node") for edge in require_list(feed, "edges")]
    return nodes, has_next_page, end_cursor


async def _rest_transactions(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    account: AccountLike,
    start_date: date | datetime | None,
    end_date: datetime,
) -> list[Transaction]:
    params = [("account_id", account.id), ("limit", REST_PAGE_LIMIT)]
    if start_date is not None:
        params.append(("effective_date_start", format_rest_date(start_date)))
        params.append(("process_date_start", format_rest_date(start_date)))
    params.append(("effective_date_end", format_rest_date(end_date)))

    payload = await get_rest(http, config, tokens, "transactions", params)
    return [transaction_from_rest(record) for record in require_envelope(payload, "transaction")]


async def _activity_transactions(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    account: AccountLike,
    start_date: date | datetime | None,
    end_date: datetime,
) -> list[Transaction]:
    condition: dict[str, Any] = {}
    if start_date is not None:
        condition["startDate"] = format_graphql_date(start_date)
    condition["endDate"] = format_graphql_date(end_date)
    condition["accountIds"] = [account.id]

    transactions: list[Transaction] = []
    cursor = None
    page = 0
    while True:
        page += 1
        payload = await post_graphql(http, config, tokens, activity_feed_request(condition, cursor))
        nodes, has_next_page, cursor = _activity_page(payload)
        logger.debug(f"Activity page {page}: {len(nodes)} items, more: {has_next_page}")

        if nodes:
            ids = [require_str(node, "externalCanonicalId") for node in nodes]
            details = await post_graphql(http, config, tokens, spend_details_request(ids))
            transactions.extend(transaction_from_activity(node) for node in merge_spend_details(nodes, details))

        if not has_next_page:
            return transactions


async def get_transactions(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    account: AccountLike,
    start_date: date | datetime | None = None,
    now: Callable[[], datetime] = utcnow,
) -> list[Transaction]:
    """Retrieve the transactions of ``account`` since ``start_date``.

    Records come back in server order, across all pages. The window always
    ends seven days in the future so pending items are included.

    Raises:
        CredentialError: If no credential is held
        ApiError: If any request or decode fails
    """
    end_date = now() + END_DATE_OFFSET
    if account.account_type == AccountType.CREDIT_CARD:
        transactions = await _activity_transactions(http, config, tokens, account, start_date, end_date)
    else:
        transactions = await _rest_transactions(http, config, tokens, account, start_date, end_date)
    logger.info(f"Retrieved {len(transactions)} transactions for account {account.id}")
    return transactions
