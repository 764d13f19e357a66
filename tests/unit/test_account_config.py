"""Tests for account alias configuration"""

import json

import pytest

from config.account_config import ACCOUNTS_TEMPLATE, AccountConfig, AccountInfo


def write_config(path, data):
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def accounts_file(tmp_path):
    return write_config(
        tmp_path / "accounts.json",
        {
            "accounts": {
                "tfsa": {"account_id": "tfsa-abc123", "label": "TFSA", "description": "Tax-free savings"},
                "card": {"account_id": "ca-credit-card-abc123"},
            }
        },
    )


def test_account_info_repr_hides_id():
    info = AccountInfo(alias="tfsa", account_id="tfsa-abc123", label="TFSA")
    assert "tfsa-abc123" not in repr(info)


def test_missing_file_disables_aliases(tmp_path):
    config = AccountConfig(tmp_path / "nonexistent.json")
    assert config.get_all_accounts() == {}
    assert config.resolve("tfsa") == "tfsa"


def test_loads_valid_file(accounts_file):
    config = AccountConfig(accounts_file)

    assert set(config.get_all_accounts()) == {"tfsa", "card"}
    assert config.get_account_info("tfsa").description == "Tax-free savings"
    # Label defaults to the alias
    assert config.get_account_info("card").label == "card"


def test_resolve_alias(accounts_file):
    config = AccountConfig(accounts_file)
    assert config.resolve("tfsa") == "tfsa-abc123"
    assert config.resolve("rrsp-xyz") == "rrsp-xyz"


def test_label_lookup(accounts_file):
    config = AccountConfig(accounts_file)
    assert config.get_account_label("tfsa-abc123") == "TFSA"
    assert config.get_account_label("rrsp-xyz", "HQ1234567CAD") == "Account (...7CAD)"
    assert config.get_account_label("rrsp-xyz") == "rrsp-xyz"


def test_invalid_json_is_ignored(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text("{ invalid json }")
    assert AccountConfig(path).get_all_accounts() == {}


def test_entry_without_account_id_is_ignored(tmp_path):
    path = write_config(tmp_path / "accounts.json", {"accounts": {"tfsa": {"label": "TFSA"}}})
    assert AccountConfig(path).get_all_accounts() == {}


def test_get_all_accounts_returns_copy(accounts_file):
    config = AccountConfig(accounts_file)
    config.get_all_accounts().clear()
    assert len(config.get_all_accounts()) == 2


def test_template_is_loadable():
    config = AccountConfig(ACCOUNTS_TEMPLATE)
    assert config.resolve("card").startswith("ca-credit-card-")

