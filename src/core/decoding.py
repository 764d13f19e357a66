"""Response envelope decoding shared by every endpoint.

Each accessor takes the JSON object it reads from as ``payload`` so that the
raised error carries exactly the fragment that broke the contract.
"""

import json
from typing import Any

import httpx

from src.core.errors import (
    HttpError,
    InvalidFieldError,
    MalformedBodyError,
    MissingFieldError,
    NoDataError,
)


def decode_json_response(response: httpx.Response) -> dict[str, Any]:
    """Validate status and body of ``response`` and return its JSON object."""
    if response.status_code != 200:
        raise HttpError(f"Status code {response.status_code}", status_code=response.status_code)
    if not response.content:
        raise NoDataError()
    try:
        body = json.loads(response.content)
    except ValueError as exc:
        raise MalformedBodyError(
            f"The server response contained invalid JSON: {exc}",
            response.content.decode("utf-8", errors="replace"),
        ) from exc
    if not isinstance(body, dict):
        raise MalformedBodyError("The server response contained invalid JSON types", body)
    return body


def require_envelope(payload: dict[str, Any], object_kind: str) -> list[dict[str, Any]]:
    """Return the ``results`` records of a REST envelope of ``object_kind``."""
    results = payload.get("results")
    kind = payload.get("object")
    if not isinstance(results, list) or not all(isinstance(r, dict) for r in results):
        raise MissingFieldError("results", payload)
    if not isinstance(kind, str):
        raise MissingFieldError("object", payload)
    if kind != object_kind:
        raise InvalidFieldError("object", payload)
    return results


def require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MissingFieldError(key, payload)
    return value


def optional_str(payload: dict[str, Any], key: str, default: str | None = None) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else default


def require_bool(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key)
    if not isinstance(value, bool):
        raise MissingFieldError(key, payload)
    return value


def require_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise MissingFieldError(key, payload)
    return value


def require_list(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise MissingFieldError(key, payload)
    return value


def require_money(payload: dict[str, Any], key: str) -> tuple[str, str]:
    """Read an ``{"amount": ..., "currency": ...}`` object as text."""
    money = require_dict(payload, key)
    if not isinstance(money.get("amount"), str) or not isinstance(money.get("currency"), str):
        raise MissingFieldError(key, payload)
    return money["amount"], money["currency"]


def require_graphql_data(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the ``data`` member of a GraphQL response.

    A response carrying only ``errors`` counts as missing data.
    """
    return require_dict(payload, "data")
