import logging
from typing import Optional

from sqlalchemy.orm import Session

from budgeteer.config import Settings
from budgeteer.models import Bank, User
from budgeteer.services.accounts_service import sync_accounts
from budgeteer.services.bank_service import LinkState, ensure_consent, get_bank
from budgeteer.services.transactions_service import sync_transactions
from budgeteer.utils.gocardless_client import GoCardlessClient, GoCardlessError

logger = logging.getLogger(__name__)


def run_sync(db: Session, bank: Bank, client: GoCardlessClient, settings: Settings) -> dict:
    consent = ensure_consent(db, bank, client, settings)
    if consent.state != LinkState.READY:
        logger.info("Bank %s is waiting for consent (%s)", bank.institution_id, consent.requisition.status)
        return {
            "institution_id": bank.institution_id,
            "state": LinkState.CONSENT_PENDING.value,
            "link": consent.link,
        }

    logger.info("Syncing bank %s (%s)", bank.institution_id, LinkState.SYNCING.value)
    try:
        accounts = sync_accounts(db, bank, consent.requisition, client, settings)
        report = sync_transactions(db, bank, accounts, client, settings)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Sync of bank %s failed, rolled back", bank.institution_id)
        raise

    return {
        "institution_id": bank.institution_id,
        "state": LinkState.SYNCED.value,
        "accounts": report,
    }


def sync_bank(db: Session, user: User, institution_id: str, client: GoCardlessClient, settings: Settings) -> dict:
    return run_sync(db, get_bank(db, user, institution_id), client, settings)


def sync_all(db: Session, user: User, client: GoCardlessClient, settings: Settings, institution_id: Optional[str] = None) -> dict:
    if institution_id:
        banks = [get_bank(db, user, institution_id)]
    else:
        banks = db.query(Bank).filter_by(user_id=user.id).order_by(Bank.id).all()
    reports = []
    for bank in banks:
        try:
            reports.append(run_sync(db, bank, client, settings))
        except GoCardlessError as e:
            # earlier banks stay committed; this one was rolled back
            db.rollback()
            logger.warning("Bank %s failed to sync: %s", bank.institution_id, e)
            reports.append({"institution_id": bank.institution_id, "state": LinkState.FAILED.value})
    return {"banks": reports}
