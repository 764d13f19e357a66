"""
GraphQL requests against my.wealthsimple.com.

Request bodies are built from ``GraphQLRequest`` and serialised with ``json``,
so variables never need escaping by hand.
"""

import json
from dataclasses import dataclass, field
from typing import Any

ACTIVITY_FEED_OPERATION = "FetchActivityFeedItems"
ACTIVITY_FEED_QUERY = """
query FetchActivityFeedItems($cursor: Cursor, $condition: ActivityCondition) {
  activityFeedItems(after: $cursor, condition: $condition, orderBy: OCCURRED_AT_DESC) {
    edges {
      node {
        amount
        amountSign
        currency
        externalCanonicalId
        occurredAt
        spendMerchant
        status
        subType
        accountId
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
""".strip()

SPEND_DETAILS_OPERATION = "FetchSpendTransactionDetails"
SPEND_DETAILS_FIELDS = "isForeign foreignAmount foreignCurrency foreignExchangeRate settledAt"
SPEND_ALIAS_PREFIX = "a"

CREDIT_CARD_SUMMARY_OPERATION = "FetchCreditCardAccountSummary"
CREDIT_CARD_SUMMARY_QUERY = """
query FetchCreditCardAccountSummary($id: ID!) {
  creditCardAccount(id: $id) {
    id
    balance {
      current
    }
  }
}
""".strip()


@dataclass(frozen=True)
class GraphQLRequest:
    """One GraphQL operation with its variables."""

    operation_name: str
    query: str
    variables: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"query": self.query, "operationName": self.operation_name, "variables": self.variables}

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


def activity_feed_request(condition: dict[str, Any], cursor: str | None = None) -> GraphQLRequest:
    """Activity feed page; ``cursor`` is the previous page's ``endCursor``."""
    variables: dict[str, Any] = {"condition": condition}
    if cursor is not None:
        variables["cursor"] = cursor
    return GraphQLRequest(ACTIVITY_FEED_OPERATION, ACTIVITY_FEED_QUERY, variables)


def spend_details_request(ids: list[str]) -> GraphQLRequest:
    """Batch the spend details of ``ids`` into one query.

    Each id gets a variable ``idN`` and its result comes back under alias ``aN``.
    """
    declarations = ", ".join(f"$id{index}: ID!" for index in range(len(ids)))
    selections = " ".join(
        f"{SPEND_ALIAS_PREFIX}{index}: spendTransaction(id: $id{index}) {{ {SPEND_DETAILS_FIELDS} }}"
        for index in range(len(ids))
    )
    query = f"query {SPEND_DETAILS_OPERATION}({declarations}) {{ {selections} }}"
    variables = {f"id{index}": value for index, value in enumerate(ids)}
    return GraphQLRequest(SPEND_DETAILS_OPERATION, query, variables)


def credit_card_summary_request(account_id: str) -> GraphQLRequest:
    return GraphQLRequest(CREDIT_CARD_SUMMARY_OPERATION, CREDIT_CARD_SUMMARY_QUERY, {"id": account_id})
