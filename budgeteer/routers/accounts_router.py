from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user
from budgeteer.models import User
from budgeteer.schemas.budget_schemas import AddManualAccount
from budgeteer.services.accounts_service import add_manual_account, list_accounts

accounts_router = APIRouter(prefix="/accounts", tags=["accounts"])


@accounts_router.get("")
def get_accounts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_accounts(db, user)


@accounts_router.post("")
def post_account(req: AddManualAccount, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return add_manual_account(db, user, req)
