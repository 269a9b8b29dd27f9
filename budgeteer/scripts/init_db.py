# creates database schema
import sys

from budgeteer.db import Base, engine
from budgeteer.models import User, Bank, Account, Budget, CategoryGroup, Category, Transaction  # noqa: F401

# python -m budgeteer.scripts.init_db --reset  drops every table first
if "--reset" in sys.argv:
    Base.metadata.drop_all(bind=engine)

# Create tables based on existing models
Base.metadata.create_all(bind=engine)
print("Database schema ready.")
