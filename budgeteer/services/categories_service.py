import logging
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budgeteer.models import Category, CategoryGroup, Transaction, User
from budgeteer.schemas.budget_schemas import CreateCategory, TransactionCategoryAssignment, UpdateCategory
from budgeteer.services.transactions_service import get_transaction_for_user

logger = logging.getLogger(__name__)


def serialize_category(c: Category) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "color": c.color,
        "keywords": c.keywords or [],
        "category_group_id": c.category_group_id,
    }


def list_categories(db: Session, user: User):
    categories = db.query(Category).filter_by(user_id=user.id).order_by(Category.id).all()
    return [serialize_category(c) for c in categories]


def get_category(db: Session, user: User, category_id: int) -> Category:
    category = db.query(Category).filter_by(id=category_id, user_id=user.id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _check_group(db: Session, user: User, category_group_id: Optional[int]):
    if category_group_id is None:
        return
    if not db.query(CategoryGroup).filter_by(id=category_group_id, user_id=user.id).first():
        raise HTTPException(status_code=404, detail="Category group not found")


def _check_name_free(db: Session, user: User, name: str, exclude_id: Optional[int] = None):
    query = db.query(Category).filter(Category.user_id == user.id, Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail="Category already exists")


def _commit_unique(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category already exists")


def create_category(db: Session, user: User, req: CreateCategory) -> dict:
    _check_name_free(db, user, req.name)
    _check_group(db, user, req.category_group_id)

    category = Category(
        user_id=user.id,
        name=req.name,
        color=req.color,
        keywords=req.keywords,
        category_group_id=req.category_group_id,
    )
    db.add(category)
    _commit_unique(db)
    db.refresh(category)
    return serialize_category(category)


def update_category(db: Session, user: User, category_id: int, req: UpdateCategory) -> dict:
    category = get_category(db, user, category_id)
    changes = req.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        _check_name_free(db, user, changes["name"], exclude_id=category.id)
        category.name = changes["name"]
    if "color" in changes:
        category.color = changes["color"]
    if changes.get("keywords") is not None:
        category.keywords = changes["keywords"]
    if "category_group_id" in changes:
        _check_group(db, user, changes["category_group_id"])
        category.category_group_id = changes["category_group_id"]

    _commit_unique(db)
    db.refresh(category)
    return serialize_category(category)


def delete_category(db: Session, user: User, category_id: int) -> dict:
    category = get_category(db, user, category_id)
    # transactions stay, uncategorized
    db.query(Transaction).filter_by(category_id=category.id).update({"category_id": None})
    db.delete(category)
    db.commit()
    return {"message": "Category deleted", "id": category_id}


def set_transaction_category(db: Session, user: User, transaction_id: int, category_id: Optional[int]) -> dict:
    transaction = get_transaction_for_user(db, user, transaction_id)
    if category_id is not None:
        get_category(db, user, category_id)
    transaction.category_id = category_id
    db.commit()
    return {"id": transaction.id, "category_id": transaction.category_id}


def set_transaction_categories(db: Session, user: User, assignments: List[TransactionCategoryAssignment]) -> dict:
    """Bulk assignment. Every pair is validated before anything is written."""
    pending = []
    for a in assignments:
        transaction = get_transaction_for_user(db, user, a.transaction_id)
        if a.category_id is not None:
            get_category(db, user, a.category_id)
        pending.append((transaction, a.category_id))

    for transaction, category_id in pending:
        transaction.category_id = category_id
    db.commit()
    return {
        "updated": len(pending),
        "transactions": [{"id": t.id, "category_id": t.category_id} for t, _ in pending],
    }


def suggest_category(description: Optional[str], categories: Iterable[Category]) -> Optional[Category]:
    """First category (in the given order) with a keyword contained in the description."""
    if not description:
        return None
    text = description.lower()
    for category in categories:
        keywords = category.match_keywords
        if keywords and any(k in text for k in keywords):
            return category
    return None


def suggest_categories(db: Session, user: User) -> dict:
    categories = db.query(Category).filter_by(user_id=user.id).order_by(Category.id).all()
    transactions = db.query(Transaction).filter_by(user_id=user.id).order_by(Transaction.id).all()

    suggestions = []
    for t in transactions:
        category = suggest_category(t.description, categories)
        if category and category.id != t.category_id:
            suggestions.append({
                "transaction_id": t.id,
                "description": t.description,
                "current_category_id": t.category_id,
                "category_id": category.id,
                "category_name": category.name,
            })
    return {"suggestions": suggestions}


def apply_suggestions(db: Session, user: User, assignments: List[TransactionCategoryAssignment]) -> dict:
    result = set_transaction_categories(db, user, assignments)
    logger.info("User %s applied %d category suggestions", user.id, result["updated"])
    return result
