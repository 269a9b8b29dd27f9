from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budgeteer.models import Budget, CategoryGroup, Transaction, User
from budgeteer.services.transactions_service import transaction_date


def month_range(month: Optional[str]) -> Tuple[date, date]:
    """Month "2024-03" -> (2024-03-01, 2024-04-01). Defaults to the current month."""
    if month:
        try:
            start = datetime.strptime(month, "%Y-%m").date()
        except ValueError:
            raise HTTPException(status_code=400, detail="month must look like YYYY-MM")
    else:
        start = date.today().replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def list_budgets(db: Session, user: User):
    budgets = db.query(Budget).filter_by(user_id=user.id).order_by(Budget.name).all()
    return [{"id": b.id, "name": b.name} for b in budgets]


def get_budget_row(db: Session, user: User, name: str) -> Budget:
    budget = db.query(Budget).filter_by(user_id=user.id, name=name).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


def create_budget(db: Session, user: User, name: str) -> dict:
    if db.query(Budget).filter_by(user_id=user.id, name=name).first():
        raise HTTPException(status_code=409, detail="Budget already exists")
    budget = Budget(user_id=user.id, name=name)
    db.add(budget)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Budget already exists")
    db.refresh(budget)
    return {"id": budget.id, "name": budget.name}


def get_budget(db: Session, user: User, name: str, month: Optional[str] = None) -> dict:
    budget = get_budget_row(db, user, name)
    start, end = month_range(month)

    spent = dict(
        db.query(Transaction.category_id, func.sum(Transaction.amount))
        .filter(
            Transaction.user_id == user.id,
            Transaction.category_id.isnot(None),
            transaction_date() >= start,
            transaction_date() < end,
        )
        .group_by(Transaction.category_id)
        .all()
    )

    groups = []
    for group in budget.category_groups:
        categories = [
            {
                "id": c.id,
                "name": c.name,
                "color": c.color,
                "amount": str(Decimal(str(spent.get(c.id) or 0)).quantize(Decimal("0.01"))),
            }
            for c in sorted(group.categories, key=lambda c: c.id)
        ]
        groups.append({"id": group.id, "name": group.name, "categories": categories})

    return {
        "id": budget.id,
        "name": budget.name,
        "month": start.strftime("%Y-%m"),
        "category_groups": groups,
    }


def create_category_group(db: Session, user: User, budget_name: str, name: str) -> dict:
    budget = get_budget_row(db, user, budget_name)
    group = CategoryGroup(user_id=user.id, budget_id=budget.id, name=name)
    db.add(group)
    db.commit()
    db.refresh(group)
    return {"id": group.id, "budget_id": budget.id, "name": group.name}
