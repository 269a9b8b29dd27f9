from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user
from budgeteer.models import User
from budgeteer.schemas.budget_schemas import CreateBudget, CreateCategoryGroup
from budgeteer.services.budgets_service import create_budget, create_category_group, get_budget, list_budgets

budgets_router = APIRouter(prefix="/budgets", tags=["budgets"])


@budgets_router.get("")
def get_budgets(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_budgets(db, user)


@budgets_router.post("")
def post_budget(req: CreateBudget, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return create_budget(db, user, req.name)


@budgets_router.get("/{name}")
def get_budget_view(name: str, month: Optional[str] = None, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_budget(db, user, name, month)


@budgets_router.post("/{name}/groups")
def post_category_group(name: str, req: CreateCategoryGroup, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return create_category_group(db, user, name, req.name)
