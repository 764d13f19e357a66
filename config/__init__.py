"""Account configuration module"""

from .account_config import AccountConfig, account_config

__all__ = ["AccountConfig", "account_config"]
