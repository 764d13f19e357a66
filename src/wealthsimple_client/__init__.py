"""
Wealthsimple Client

Read-only access to the Wealthsimple web API:
- Token lifecycle with persisted, refreshed and interactive credentials
- Accounts, positions and transactions (REST and GraphQL)
- CLI for portfolio inspection
"""

from .auth import LoginCredentials, TokenManager
from .client import WealthsimpleClient
from .models import Account, AccountType, Asset, AssetType, Credential, Position, Transaction, TransactionType
from .settings import ApiConfig
from .storage import CredentialStorage, JsonFileCredentialStorage, MemoryCredentialStorage

__all__ = [
    "Account",
    "AccountType",
    "ApiConfig",
    "Asset",
    "AssetType",
    "Credential",
    "CredentialStorage",
    "JsonFileCredentialStorage",
    "LoginCredentials",
    "MemoryCredentialStorage",
    "Position",
    "TokenManager",
    "Transaction",
    "TransactionType",
    "WealthsimpleClient",
]
