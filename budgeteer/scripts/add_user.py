# pre-approves an email for Google sign-in
# python -m budgeteer.scripts.add_user someone@example.com "Some One"
import sys

from budgeteer.db import sessionlocal
from budgeteer.services.user_service import add_user

if len(sys.argv) < 2:
    sys.exit("usage: python -m budgeteer.scripts.add_user EMAIL [NAME]")

db = sessionlocal()
try:
    user = add_user(db, sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
    print(f"User {user.email} can now sign in (id={user.id}).")
finally:
    db.close()
