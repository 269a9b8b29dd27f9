import logging
import math
from datetime import date
from functools import partial
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from budgeteer.config import Settings
from budgeteer.models import Account, Bank, Transaction, User
from budgeteer.services.mappers import transactions_from_remote
from budgeteer.utils.concurrency import gather
from budgeteer.utils.gocardless_client import GoCardlessClient

logger = logging.getLogger(__name__)

BATCH_SIZE = 5

# Columns owned by the bank. Category and classifications belong to the user.
REMOTE_FIELDS = (
    "status",
    "amount",
    "currency",
    "exchange_rate",
    "booking_date",
    "value_date",
    "creditor_name",
    "creditor_bban",
    "debtor_name",
    "debtor_bban",
    "description",
)


def transaction_date():
    return func.coalesce(Transaction.value_date, Transaction.booking_date)


def serialize_transaction(t: Transaction) -> dict:
    return {
        "id": t.id,
        "status": t.status,
        "amount": str(t.amount),
        "currency": t.currency,
        "exchange_rate": t.exchange_rate,
        "booking_date": t.booking_date.isoformat() if t.booking_date else None,
        "value_date": t.value_date.isoformat() if t.value_date else None,
        "creditor_name": t.creditor_name,
        "debtor_name": t.debtor_name,
        "description": t.description,
        "spending_type": t.spending_type,
        "want_or_need": t.want_or_need,
        "account": {"id": t.account.id, "name": t.account.name},
        "bank": {"institution_id": t.bank.institution_id, "name": t.bank.name, "logo": t.bank.logo},
        "category": {
            "id": t.category.id,
            "name": t.category.name,
            "color": t.category.color,
        } if t.category else None,
    }


def save_transactions(db: Session, rows: List[dict]) -> Tuple[int, int]:
    """Upsert mapped rows in batches, keyed by (account, remote transaction id).

    Returns (inserted, updated). Rows that come back unchanged count as neither.
    """
    inserted = updated = 0
    index = {}

    for start in range(0, len(rows), BATCH_SIZE):
        batch = rows[start:start + BATCH_SIZE]

        missing = {(r["account_id"], r["gocardless_transaction_id"]) for r in batch} - set(index)
        if missing:
            existing = db.query(Transaction).filter(
                Transaction.user_id == batch[0]["user_id"],
                Transaction.account_id.in_({key[0] for key in missing}),
                Transaction.gocardless_transaction_id.in_({key[1] for key in missing}),
            )
            for t in existing:
                index.setdefault((t.account_id, t.gocardless_transaction_id), t)

        for row in batch:
            key = (row["account_id"], row["gocardless_transaction_id"])
            transaction = index.get(key)
            if transaction is None:
                transaction = Transaction(**row)
                db.add(transaction)
                index[key] = transaction
                inserted += 1
                continue

            changed = False
            for field in REMOTE_FIELDS:
                if getattr(transaction, field) != row[field]:
                    setattr(transaction, field, row[field])
                    changed = True
            if changed:
                updated += 1

        db.flush()

    return inserted, updated


def prune_stale_pending(db: Session, account: Account, rows: List[dict], date_from: Optional[date]) -> int:
    """Drop id-less pending rows of the fetched window that the bank no longer lists.

    Their booked version usually carries other dates and so another synthetic id.
    """
    query = db.query(Transaction).filter(
        Transaction.account_id == account.id,
        Transaction.status == "pending",
        Transaction.gocardless_transaction_id.like("synthetic-%"),
        Transaction.gocardless_transaction_id.notin_([r["gocardless_transaction_id"] for r in rows]),
    )
    if date_from:
        query = query.filter(transaction_date() >= date_from)
    stale = query.all()
    for transaction in stale:
        db.delete(transaction)
    db.flush()
    return len(stale)


def latest_value_date(db: Session, account: Account) -> Optional[date]:
    return db.query(func.max(transaction_date())).filter(Transaction.account_id == account.id).scalar()


def sync_transactions(db: Session, bank: Bank, accounts: List[Account], client: GoCardlessClient, settings: Settings) -> List[dict]:
    """Fetch new transactions of every remote account in parallel and upsert them.

    Each account resumes from its latest stored date. The caller commits.
    """
    accounts = [a for a in accounts if not a.is_manual]
    cursors = [latest_value_date(db, a) for a in accounts]
    results = gather(
        [partial(client.get_account_transactions, a.gocardless_account_id, d) for a, d in zip(accounts, cursors)],
        settings.sync_max_workers,
    )

    report = []
    for account, date_from, remote in zip(accounts, cursors, results):
        rows = transactions_from_remote(remote.pending, remote.booked, account)
        inserted, updated = save_transactions(db, rows)
        removed = prune_stale_pending(db, account, rows, date_from)
        logger.info(
            "Account %s (%s): fetched=%d inserted=%d updated=%d removed=%d date_from=%s",
            account.id, bank.institution_id, len(rows), inserted, updated, removed, date_from,
        )
        report.append({
            "account_id": account.id,
            "name": account.name,
            "fetched": len(rows),
            "inserted": inserted,
            "updated": updated,
            "removed": removed,
        })
    return report


def list_transactions(db: Session, user: User, page: int, page_size: int) -> dict:
    query = db.query(Transaction).filter(Transaction.user_id == user.id)
    total = query.count()
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(page, 1), total_pages)

    transactions = (
        query.options(
            joinedload(Transaction.account),
            joinedload(Transaction.bank),
            joinedload(Transaction.category),
        )
        .order_by(transaction_date().desc(), Transaction.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": total_pages,
        "transactions": [serialize_transaction(t) for t in transactions],
    }


def get_transaction_for_user(db: Session, user: User, transaction_id: int) -> Transaction:
    transaction = db.query(Transaction).filter_by(id=transaction_id, user_id=user.id).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


def set_spending_type(db: Session, user: User, transaction_id: int, value: Optional[str]) -> dict:
    transaction = get_transaction_for_user(db, user, transaction_id)
    transaction.spending_type = value
    db.commit()
    return {"id": transaction.id, "spending_type": transaction.spending_type}


def set_want_or_need(db: Session, user: User, transaction_id: int, value: Optional[str]) -> dict:
    transaction = get_transaction_for_user(db, user, transaction_id)
    transaction.want_or_need = value
    db.commit()
    return {"id": transaction.id, "want_or_need": transaction.want_or_need}
