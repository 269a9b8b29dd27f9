import logging
from datetime import date
from functools import partial
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from budgeteer.config import Settings
from budgeteer.models import Account, Bank, User
from budgeteer.schemas.budget_schemas import AddManualAccount
from budgeteer.schemas.gocardless_schemas import Requisition
from budgeteer.services.mappers import account_from_remote
from budgeteer.utils.concurrency import gather
from budgeteer.utils.gocardless_client import GoCardlessClient

logger = logging.getLogger(__name__)


def serialize_account(account: Account) -> dict:
    return {
        "id": account.id,
        "gocardless_account_id": account.gocardless_account_id,
        "name": account.name,
        "owner_name": account.owner_name,
        "bban": account.bban,
        "account_type": account.account_type,
        "balances": account.balances or [],
        "manual": account.is_manual,
        "bank": {
            "institution_id": account.bank.institution_id,
            "name": account.bank.name,
            "logo": account.bank.logo,
        },
    }


def save_accounts(db: Session, bank: Bank, rows: List[dict]) -> List[Account]:
    existing = {
        a.gocardless_account_id: a
        for a in db.query(Account).filter_by(user_id=bank.user_id, bank_id=bank.id)
        if a.gocardless_account_id
    }

    saved = []
    for row in rows:
        account = existing.get(row["gocardless_account_id"])
        if account:
            account.name = row["name"]
            account.owner_name = row["owner_name"]
            account.bban = row["bban"]
            account.balances = row["balances"]
        else:
            account = Account(**row)
            db.add(account)
            existing[row["gocardless_account_id"]] = account
        saved.append(account)

    db.flush()
    return saved


def sync_accounts(db: Session, bank: Bank, requisition: Requisition, client: GoCardlessClient, settings: Settings) -> List[Account]:
    """Fetch details and balances of every account behind the requisition and upsert them.

    Nothing is written unless every fetch succeeded. The caller commits.
    """
    account_ids = list(requisition.accounts)
    calls = []
    for account_id in account_ids:
        calls.append(partial(client.get_account_details, account_id))
        calls.append(partial(client.get_account_balances, account_id))
    results = gather(calls, settings.sync_max_workers)

    rows = []
    for i, account_id in enumerate(account_ids):
        details, balances = results[2 * i], results[2 * i + 1]
        rows.append(account_from_remote(bank, account_id, details, balances))

    logger.info("Fetched %d accounts for bank %s", len(rows), bank.institution_id)
    return save_accounts(db, bank, rows)


def list_accounts(db: Session, user: User, institution_id: Optional[str] = None):
    query = db.query(Account).join(Bank, Account.bank_id == Bank.id).filter(Account.user_id == user.id)
    if institution_id:
        query = query.filter(Bank.institution_id == institution_id)
    accounts = query.order_by(Bank.name, Account.name, Account.id).all()
    return [serialize_account(a) for a in accounts]


def add_manual_account(db: Session, user: User, data: AddManualAccount) -> dict:
    bank = db.query(Bank).filter_by(user_id=user.id, name=data.bank_name).first()
    if not bank:
        raise HTTPException(status_code=404, detail="Bank not found")

    today = date.today().isoformat()
    amount = str(data.starting_balance)
    account = Account(
        gocardless_account_id=None,
        bank_id=bank.id,
        user_id=user.id,
        name=data.account_name,
        owner_name=data.owner_name,
        account_type=data.type,
        balances=[
            {"amount": amount, "currency": data.currency, "type": balance_type, "as_of": today}
            for balance_type in ("interimAvailable", "openingBooked")
        ],
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Added manual account %s to bank %s", account.id, bank.institution_id)
    return serialize_account(account)
