"""
Account Configuration - reads aliases and labels from a JSON config file
Uses config/accounts.json (gitignored); Wealthsimple account ids never need to be typed.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# Config file paths
CONFIG_DIR = Path(__file__).parent
ACCOUNTS_FILE = CONFIG_DIR / "accounts.json"
ACCOUNTS_TEMPLATE = CONFIG_DIR / "accounts.template.json"


@dataclass
class AccountInfo:
    """Account information"""

    alias: str
    account_id: str
    label: str
    description: str = ""

    def __repr__(self):
        return f"AccountInfo(alias='{self.alias}', label='{self.label}')"


class AccountConfig:
    """Alias and label mapping for Wealthsimple accounts"""

    def __init__(self, accounts_file: Path = ACCOUNTS_FILE):
        self.accounts_file = Path(accounts_file)
        self.account_info: dict[str, AccountInfo] = {}
        self._load_from_json()

    def _load_from_json(self):
        """Load account configuration from JSON file"""
        if not self.accounts_file.exists():
            logger.debug(f"{self.accounts_file} not found, account aliases disabled")
            return

        try:
            with open(self.accounts_file) as f:
                config = json.load(f)
            for alias, account_data in config.get("accounts", {}).items():
                self.account_info[alias] = AccountInfo(
                    alias=alias,
                    account_id=account_data["account_id"],
                    label=account_data.get("label", alias),
                    description=account_data.get("description", ""),
                )
            logger.info(f"Loaded {len(self.account_info)} accounts from {self.accounts_file}")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {self.accounts_file}: {e}")
            self.account_info = {}
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error loading account config: {e}")
            self.account_info = {}

    def resolve(self, reference: str) -> str:
        """Account id for an alias; anything else is taken as an id already"""
        info = self.account_info.get(reference)
        return info.account_id if info else reference

    def get_account_info(self, alias: str) -> AccountInfo | None:
        return self.account_info.get(alias)

    def get_account_info_by_id(self, account_id: str) -> AccountInfo | None:
        for info in self.account_info.values():
            if info.account_id == account_id:
                return info
        return None

    def get_account_label(self, account_id: str, number: str = "") -> str:
        """Get a display label for an account"""
        info = self.get_account_info_by_id(account_id)
        if info:
            return info.label
        if number:
            return f"Account (...{number[-4:]})"
        return account_id

    def get_all_accounts(self) -> dict[str, AccountInfo]:
        """Get all account information"""
        return self.account_info.copy()


# Global instance
account_config = AccountConfig()
