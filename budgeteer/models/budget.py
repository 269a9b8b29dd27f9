from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from budgeteer.db import Base
from sqlalchemy.orm import relationship, backref

class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_budget_user_name"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)


class CategoryGroup(Base):
    __tablename__ = "category_groups"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    budget_id = Column(Integer, ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)

    budget = relationship(
        "Budget",
        backref=backref("category_groups", cascade="all, delete-orphan", passive_deletes=True, order_by="CategoryGroup.id"),
    )
