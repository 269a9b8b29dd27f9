from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgeteer.config import Settings, get_settings
from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user, get_gocardless_client
from budgeteer.models import User
from budgeteer.schemas.budget_schemas import (
    SetCategoriesRequest,
    SetCategoryRequest,
    SpendingTypeRequest,
    SyncRequest,
    WantOrNeedRequest,
)
from budgeteer.services.categories_service import (
    apply_suggestions,
    set_transaction_categories,
    set_transaction_category,
    suggest_categories,
)
from budgeteer.services.sync_service import sync_all
from budgeteer.services.transactions_service import list_transactions, set_spending_type, set_want_or_need
from budgeteer.utils.gocardless_client import GoCardlessClient

transactions_router = APIRouter(prefix="/transactions", tags=["transactions"])


@transactions_router.get("")
def get_transactions(
    page: int = 1,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return list_transactions(db, user, page, settings.transactions_page_size)


@transactions_router.post("/sync")
def post_sync(
    req: Optional[SyncRequest] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GoCardlessClient = Depends(get_gocardless_client),
    settings: Settings = Depends(get_settings),
):
    return sync_all(db, user, client, settings, req.institution_id if req else None)


@transactions_router.get("/suggestions")
def get_suggestions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return suggest_categories(db, user)


@transactions_router.post("/suggestions/apply")
def post_apply_suggestions(req: SetCategoriesRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return apply_suggestions(db, user, req.transactions)


@transactions_router.put("/categories")
def put_categories(req: SetCategoriesRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return set_transaction_categories(db, user, req.transactions)


@transactions_router.put("/{transaction_id}/category")
def put_category(transaction_id: int, req: SetCategoryRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return set_transaction_category(db, user, transaction_id, req.category_id)


@transactions_router.put("/{transaction_id}/spending-type")
def put_spending_type(transaction_id: int, req: SpendingTypeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return set_spending_type(db, user, transaction_id, req.value)


@transactions_router.put("/{transaction_id}/want-or-need")
def put_want_or_need(transaction_id: int, req: WantOrNeedRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return set_want_or_need(db, user, transaction_id, req.value)
