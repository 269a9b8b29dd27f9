"""Turn GoCardless response shapes into column values for local rows."""
import hashlib
from collections import Counter
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from budgeteer.models import Account, Bank
from budgeteer.schemas.gocardless_schemas import (
    AccountBalances,
    AccountDetails,
    Balance,
    RemoteTransaction,
)
from budgeteer.utils.gocardless_client import GoCardlessError


def balance_snapshot(balances: List[Balance]) -> List[dict]:
    return [
        {
            "amount": b.balance_amount.amount,
            "currency": b.balance_amount.currency,
            "type": b.balance_type,
            "as_of": b.reference_date.isoformat() if b.reference_date else None,
        }
        for b in balances
    ]


def account_from_remote(bank: Bank, account_id: str, details: AccountDetails, balances: AccountBalances) -> dict:
    info = details.account
    return {
        "gocardless_account_id": account_id,
        "user_id": bank.user_id,
        "bank_id": bank.id,
        "name": info.name or f"{bank.name} - {account_id}",
        "owner_name": info.owner_name or "Unknown",
        "bban": info.bban,
        "balances": balance_snapshot(balances.balances),
    }


def synthetic_content(account_id: str, remote: RemoteTransaction) -> str:
    # status is left out so a pending row keeps its id once booked
    return "|".join([
        account_id,
        remote.booking_date.isoformat() if remote.booking_date else "",
        remote.value_date.isoformat() if remote.value_date else "",
        remote.transaction_amount.amount,
        remote.transaction_amount.currency,
        remote.creditor_name or "",
        remote.debtor_name or "",
        remote.description or "",
    ])


def synthetic_transaction_id(account_id: str, remote: RemoteTransaction, occurrence: int = 0) -> str:
    """Stable id for banks that send neither transactionId nor internalTransactionId.

    Built from the transaction's content plus its position among rows with
    the same content, so two identical purchases on one day stay two rows
    and the same remote event maps to the same row on every sync.
    """
    digest = hashlib.sha1(f"{synthetic_content(account_id, remote)}|{occurrence}".encode()).hexdigest()
    return f"synthetic-{digest}"


def parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise GoCardlessError(f"Invalid transaction amount {value!r}") from e


def transaction_from_remote(remote: RemoteTransaction, status: str, account: Account, occurrence: int = 0) -> dict:
    remote_id = remote.transaction_id or remote.internal_transaction_id
    exchange_rate: Optional[str] = None
    if remote.currency_exchange:
        exchange_rate = remote.currency_exchange[0].exchange_rate

    return {
        "gocardless_transaction_id": remote_id or synthetic_transaction_id(account.gocardless_account_id, remote, occurrence),
        "user_id": account.user_id,
        "bank_id": account.bank_id,
        "account_id": account.id,
        "status": status,
        "amount": parse_amount(remote.transaction_amount.amount),
        "currency": remote.transaction_amount.currency,
        "exchange_rate": exchange_rate,
        "booking_date": remote.booking_date,
        "value_date": remote.value_date,
        "creditor_name": remote.creditor_name,
        "creditor_bban": remote.creditor_account.bban if remote.creditor_account else None,
        "debtor_name": remote.debtor_name,
        "debtor_bban": remote.debtor_account.bban if remote.debtor_account else None,
        "description": remote.description,
    }


def transactions_from_remote(pending: List[RemoteTransaction], booked: List[RemoteTransaction], account: Account) -> List[dict]:
    rows = {}
    # booked last so a transaction listed in both ends up booked
    for status, remotes in (("pending", pending), ("booked", booked)):
        seen = Counter()
        for remote in remotes:
            occurrence = 0
            if not (remote.transaction_id or remote.internal_transaction_id):
                content = synthetic_content(account.gocardless_account_id, remote)
                occurrence = seen[content]
                seen[content] += 1
            row = transaction_from_remote(remote, status, account, occurrence)
            rows[row["gocardless_transaction_id"]] = row
    return list(rows.values())
