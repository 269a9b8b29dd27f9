from budgeteer.models.user import User
from budgeteer.models.bank import Bank
from budgeteer.models.account import Account
from budgeteer.models.budget import Budget, CategoryGroup
from budgeteer.models.category import Category
from budgeteer.models.transaction import Transaction
