"""
Domain types returned by the Wealthsimple client.

All monetary and quantity values are kept as the decimal text the API sent,
never converted to float.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


class AccountType(Enum):
    """Type of the account (Canadian accounts only)."""

    TFSA = "ca_tfsa"
    CHEQUING = "ca_cash_msb"
    SAVING = "ca_cash"
    RRSP = "ca_rrsp"
    NON_REGISTERED = "ca_non_registered"
    NON_REGISTERED_CRYPTO = "ca_non_registered_crypto"
    LIRA = "ca_lira"
    JOINT = "ca_joint"
    RRIF = "ca_rrif"
    LIF = "ca_lif"
    CREDIT_CARD = "ca_credit_card"


class AssetType(Enum):
    CURRENCY = "currency"
    EQUITY = "equity"
    MUTUAL_FUND = "mutual_fund"
    BOND = "bond"
    EXCHANGE_TRADED_FUND = "exchange_traded_fund"


class TransactionType(Enum):
    """Kind of transaction, keyed by the camel-cased API type."""

    BUY = "buy"
    CONTRIBUTION = "contribution"
    DIVIDEND = "dividend"
    CUSTODIAN_FEE = "custodianFee"
    DEPOSIT = "deposit"
    FEE = "fee"
    FOREX = "forex"
    GRANT = "grant"
    HOME_BUYERS_PLAN = "homeBuyersPlan"
    HST = "hst"
    CHARGED_INTEREST = "chargedInterest"
    JOURNAL = "journal"
    NON_RESIDENT_WITHHOLDING_TAX = "nonResidentWithholdingTax"
    REDEMPTION = "redemption"
    RISK_EXPOSURE_FEE = "riskExposureFee"
    REFUND = "refund"
    REIMBURSEMENT = "reimbursement"
    SELL = "sell"
    STOCK_DISTRIBUTION = "stockDistribution"
    STOCK_DIVIDEND = "stockDividend"
    TRANSFER_IN = "transferIn"
    TRANSFER_OUT = "transferOut"
    WITHHOLDING_TAX = "withholdingTax"
    WITHDRAWAL = "withdrawal"
    PAYMENT_TRANSFER_IN = "wealthsimplePaymentsTransferIn"
    PAYMENT_TRANSFER_OUT = "wealthsimplePaymentsTransferOut"
    REFERRAL_BONUS = "referralBonus"
    INTEREST = "interest"
    PAYMENT_SPEND = "wealthsimplePaymentsSpend"
    GIVEAWAY_BONUS = "giveawayBonus"
    CASHBACK_BONUS = "cashbackBonus"
    ONLINE_BILL_PAYMENT = "onlineBillPayment"
    STOCK_LOAN_BORROW = "fPLLoanedSecurities"
    STOCK_LOAN_RETURN = "fPLRecalledSecurities"
    MANUFACTURED_DIVIDEND = "manufacturedDividend"
    RETURN_OF_CAPITAL = "returnOfCapital"
    NON_CASH_DISTRIBUTION = "nonCashDistribution"
    PURCHASE = "purchase"
    PAYMENT = "payment"


_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")


def camel_case(value: str) -> str:
    """Convert ``snake_case`` / ``kebab case`` API tags to camelCase.

    Only the first character of each part changes case, so ``FPL_loaned``
    becomes ``fPLLoaned``.
    """
    if not value:
        return ""
    first, *rest = _NON_ALPHANUMERIC.split(value)
    return first[:1].lower() + first[1:] + "".join(part[:1].upper() + part[1:] for part in rest)


def negate_amount(amount: str) -> str:
    """Flip the sign of a decimal string without converting it."""
    if amount.startswith("-"):
        return amount[1:]
    return f"-{amount}"


class AccountLike(Protocol):
    """Anything the caller can hand in as an account reference."""

    id: str
    account_type: AccountType
    currency: str
    number: str


@dataclass(frozen=True)
class Account:
    """An account at Wealthsimple"""

    id: str
    account_type: AccountType
    currency: str
    number: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "type": self.account_type.value,
            "currency": self.currency,
            "number": self.number,
        }


@dataclass(frozen=True)
class Asset:
    """An asset, like a stock or a currency"""

    symbol: str
    name: str
    currency: str
    type: AssetType
    id: str

    @classmethod
    def for_currency(cls, currency: str) -> "Asset":
        return cls(symbol=currency, name=currency, currency=currency, type=AssetType.CURRENCY, id=currency)


@dataclass(frozen=True)
class Position:
    """Units of an asset held in an account on ``position_date``"""

    account_id: str
    asset: Asset
    quantity: str
    price_amount: str
    price_currency: str
    position_date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "asset": {
                "id": self.asset.id,
                "symbol": self.asset.symbol,
                "name": self.asset.name,
                "currency": self.asset.currency,
                "type": self.asset.type.value,
            },
            "quantity": self.quantity,
            "price": {"amount": self.price_amount, "currency": self.price_currency},
            "position_date": self.position_date.isoformat(),
        }


@dataclass(frozen=True)
class Transaction:
    """A transaction, like buying stock or a card purchase"""

    id: str
    account_id: str
    transaction_type: TransactionType
    description: str
    symbol: str
    quantity: str
    market_price_amount: str
    market_price_currency: str
    market_value_amount: str
    market_value_currency: str
    net_cash_amount: str
    net_cash_currency: str
    fx_rate: str
    effective_date: datetime
    process_date: datetime

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-ready representation (used by the CLI)."""
        return {
            "id": self.id,
            "account_id": self.account_id,
            "type": self.transaction_type.value,
            "description": self.description,
            "symbol": self.symbol,
            "quantity": self.quantity,
            "market_price": {"amount": self.market_price_amount, "currency": self.market_price_currency},
            "market_value": {"amount": self.market_value_amount, "currency": self.market_value_currency},
            "net_cash": {"amount": self.net_cash_amount, "currency": self.net_cash_currency},
            "fx_rate": self.fx_rate,
            "effective_date": self.effective_date.isoformat(),
            "process_date": self.process_date.isoformat(),
        }


@dataclass(frozen=True)
class Credential:
    """Access/refresh token pair and the absolute expiry of the access token."""

    access_token: str
    refresh_token: str
    expiry: datetime

    def __repr__(self):
        return f"Credential(expiry='{self.expiry.isoformat()}')"

    @property
    def expiry_timestamp(self) -> float:
        return self.expiry.timestamp()

    @classmethod
    def from_timestamp(cls, access_token: str, refresh_token: str, expiry: float) -> "Credential":
        return cls(access_token, refresh_token, datetime.fromtimestamp(expiry, tz=timezone.utc))

    def needs_refresh(self, now: datetime) -> bool:
        """An expiry equal to ``now`` already counts as expired."""
        return self.expiry <= now
