from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from budgeteer.config import Settings, get_settings
from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user, get_gocardless_client
from budgeteer.models import User
from budgeteer.schemas.budget_schemas import LinkBankRequest
from budgeteer.services.accounts_service import list_accounts
from budgeteer.services.bank_service import complete_link, get_bank, link_bank, list_banks, list_institutions, remove_bank
from budgeteer.services.sync_service import sync_bank
from budgeteer.utils.gocardless_client import GoCardlessClient
from budgeteer.utils.session import carry_cookies

banks_router = APIRouter(prefix="/banks", tags=["banks"])


@banks_router.get("/institutions")
def get_institutions(
    country: Optional[str] = None,
    user: User = Depends(get_current_user),
    client: GoCardlessClient = Depends(get_gocardless_client),
    settings: Settings = Depends(get_settings),
):
    return list_institutions(client, country or settings.gocardless_country)


@banks_router.get("")
def get_banks(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_banks(db, user)


@banks_router.post("")
def post_bank(
    req: LinkBankRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GoCardlessClient = Depends(get_gocardless_client),
    settings: Settings = Depends(get_settings),
):
    return link_bank(db, user, req.institution_id, client, settings)


# GoCardless sends the user back here after the consent flow
@banks_router.get("/{institution_id}/authenticate")
def authenticate_bank(
    institution_id: str,
    response: Response,
    ref: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GoCardlessClient = Depends(get_gocardless_client),
):
    if ref:
        complete_link(db, user, institution_id, ref, client)
    return carry_cookies(response, RedirectResponse("/banks", status_code=303))


@banks_router.delete("/{institution_id}")
def delete_bank(institution_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return remove_bank(db, user, institution_id)


@banks_router.post("/{institution_id}/sync")
def post_bank_sync(
    institution_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GoCardlessClient = Depends(get_gocardless_client),
    settings: Settings = Depends(get_settings),
):
    return sync_bank(db, user, institution_id, client, settings)


@banks_router.get("/{institution_id}/accounts")
def get_bank_accounts(institution_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    get_bank(db, user, institution_id)
    return list_accounts(db, user, institution_id)
