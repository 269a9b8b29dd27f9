import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from budgeteer.config import Settings
from budgeteer.models import Bank, User
from budgeteer.schemas.gocardless_schemas import Requisition
from budgeteer.utils.gocardless_client import GoCardlessClient, GoCardlessError

logger = logging.getLogger(__name__)


class LinkState(str, Enum):
    NEEDS_BANK = "needs_bank"
    NEEDS_CONSENT = "needs_consent"
    CONSENT_PENDING = "consent_pending"
    READY = "ready"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


@dataclass
class ConsentState:
    state: LinkState
    requisition: Requisition
    link: Optional[str] = None


def serialize_bank(bank: Bank) -> dict:
    return {
        "id": bank.id,
        "institution_id": bank.institution_id,
        "name": bank.name,
        "logo": bank.logo,
        "bic": bank.bic,
        "requisition_id": bank.requisition_id,
    }


def consent_redirect_url(settings: Settings, institution_id: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/banks/{institution_id}/authenticate"


def find_bank(db: Session, user: User, institution_id: str) -> Optional[Bank]:
    return db.query(Bank).filter_by(user_id=user.id, institution_id=institution_id).first()


def get_bank(db: Session, user: User, institution_id: str) -> Bank:
    bank = find_bank(db, user, institution_id)
    if not bank:
        raise HTTPException(status_code=404, detail="Bank not found")
    return bank


def list_banks(db: Session, user: User):
    banks = db.query(Bank).filter_by(user_id=user.id).order_by(Bank.name).all()
    return [serialize_bank(b) for b in banks]


def list_institutions(client: GoCardlessClient, country: str):
    return [
        {"id": i.id, "name": i.name, "bic": i.bic, "logo": i.logo}
        for i in client.list_institutions(country)
    ]


def link_state(bank: Optional[Bank], requisition: Optional[Requisition]) -> LinkState:
    if bank is None:
        return LinkState.NEEDS_BANK
    if requisition is None or requisition.is_dead:
        return LinkState.NEEDS_CONSENT
    if not requisition.is_linked:
        return LinkState.CONSENT_PENDING
    return LinkState.READY


def get_or_add_bank(db: Session, user: User, institution_id: str, client: GoCardlessClient) -> Bank:
    bank = find_bank(db, user, institution_id)
    if bank:
        return bank

    institution = client.get_institution(institution_id)
    if not institution:
        raise HTTPException(status_code=404, detail="Bank not found")

    bank = Bank(
        user_id=user.id,
        institution_id=institution.id,
        name=institution.name,
        logo=institution.logo,
        bic=institution.bic,
    )
    db.add(bank)
    db.commit()
    db.refresh(bank)
    logger.info("Added bank %s for user %s", institution_id, user.id)
    return bank


def ensure_consent(db: Session, bank: Bank, client: GoCardlessClient, settings: Settings) -> ConsentState:
    """Make sure the bank has a live requisition, replacing a missing or expired one.

    The consent link is only handed back to the caller; the user has to follow
    it themselves.
    """
    requisition = client.get_requisition(bank.requisition_id)
    if link_state(bank, requisition) == LinkState.NEEDS_CONSENT:
        previous = requisition.status if requisition else None
        requisition = client.create_requisition(
            bank.institution_id,
            consent_redirect_url(settings, bank.institution_id),
        )
        if not requisition.link:
            raise GoCardlessError(f"Requisition {requisition.id} was created without a consent link")
        bank.requisition_id = requisition.id
        db.commit()
        logger.info(
            "Created requisition %s for bank %s (previous status: %s)",
            requisition.id, bank.institution_id, previous,
        )

    state = link_state(bank, requisition)
    if state == LinkState.READY:
        return ConsentState(state, requisition)
    return ConsentState(state, requisition, requisition.link)


def link_bank(db: Session, user: User, institution_id: str, client: GoCardlessClient, settings: Settings) -> dict:
    bank = get_or_add_bank(db, user, institution_id, client)
    consent = ensure_consent(db, bank, client, settings)
    return {
        "bank": serialize_bank(bank),
        "state": consent.state.value,
        "requisition_id": consent.requisition.id,
        "link": consent.link,
    }


def complete_link(db: Session, user: User, institution_id: str, ref: str, client: GoCardlessClient) -> Bank:
    """Store the requisition the user just authorized (the consent callback)."""
    requisition = client.get_requisition(ref)
    if not requisition or (requisition.institution_id and requisition.institution_id != institution_id):
        raise HTTPException(status_code=404, detail="Requisition not found")

    institution = client.get_institution(institution_id)
    if not institution:
        raise HTTPException(status_code=404, detail="Bank not found")

    bank = find_bank(db, user, institution_id)
    if not bank:
        bank = Bank(user_id=user.id, institution_id=institution.id)
        db.add(bank)
    bank.name = institution.name
    bank.logo = institution.logo
    bank.bic = institution.bic
    bank.requisition_id = requisition.id
    db.commit()
    db.refresh(bank)
    logger.info("Linked bank %s with requisition %s (%s)", institution_id, requisition.id, requisition.status)
    return bank


def remove_bank(db: Session, user: User, institution_id: str) -> dict:
    bank = get_bank(db, user, institution_id)
    # accounts and their transactions go with it
    db.delete(bank)
    db.commit()
    return {"message": "Bank removed", "institution_id": institution_id}
