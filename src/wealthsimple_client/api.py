"""Authorized transport shared by the resource modules."""

import logging
from typing import Any

import httpx

from src.core.decoding import decode_json_response
from src.core.errors import CredentialError, HttpError, TokenError

from .auth import TokenManager
from .graphql import GraphQLRequest
from .settings import ApiConfig

logger = logging.getLogger(__name__)


async def authorized_headers(tokens: TokenManager) -> dict[str, str]:
    """Headers carrying the current bearer token, refreshed first if expired.

    Raises:
        CredentialError: If no credential is held or the refresh fails
    """
    try:
        await tokens.ensure_valid()
        return tokens.authorize({"Content-Type": "application/json"})
    except TokenError as e:
        raise CredentialError(e) from e


async def get_rest(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    path: str,
    params: list[tuple[str, str]],
) -> dict[str, Any]:
    """GET a REST resource and return its decoded envelope."""
    headers = await authorized_headers(tokens)
    logger.debug(f"GET {path} {params}")
    try:
        response = await http.get(config.url(path), params=params, headers=headers)
    except httpx.HTTPError as e:
        raise HttpError(str(e)) from e
    return decode_json_response(response)


async def post_graphql(
    http: httpx.AsyncClient,
    config: ApiConfig,
    tokens: TokenManager,
    request: GraphQLRequest,
) -> dict[str, Any]:
    """POST ``request`` and return the decoded JSON object.

    Raises:
        CredentialError: If no credential is held
        HttpError: On transport failure or a non-200 status
        ApiError: If the body is empty or not a JSON object
    """
    headers = await authorized_headers(tokens)
    logger.debug(f"GraphQL {request.operation_name}")
    try:
        response = await http.post(config.graphql_url, content=request.to_json(), headers=headers)
    except httpx.HTTPError as e:
        raise HttpError(str(e)) from e
    return decode_json_response(response)
