from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user
from budgeteer.models import User
from budgeteer.schemas.budget_schemas import CreateCategory, UpdateCategory
from budgeteer.services.categories_service import create_category, delete_category, list_categories, update_category

categories_router = APIRouter(prefix="/categories", tags=["categories"])


@categories_router.get("")
def get_categories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_categories(db, user)


@categories_router.post("")
def post_category(req: CreateCategory, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return create_category(db, user, req)


@categories_router.patch("/{category_id}")
def patch_category(category_id: int, req: UpdateCategory, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return update_category(db, user, category_id, req)


@categories_router.delete("/{category_id}")
def remove_category(category_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return delete_category(db, user, category_id)
