# seeds a starter set of keyword categories for one user
# python -m budgeteer.scripts.seed_categories someone@example.com
import sys

from sqlalchemy.orm import Session

from budgeteer.db import engine
from budgeteer.models import Category, User

categories = [
    {"name": "Groceries", "color": "#2ECC40", "keywords": ["rema", "kiwi", "coop", "meny", "extra", "tesco"]},
    {"name": "Transport", "color": "#0074D9", "keywords": ["ruter", "vy", "flytoget", "bolt", "uber"]},
    {"name": "Eating Out", "color": "#FF851B", "keywords": ["restaurant", "cafe", "foodora", "wolt"]},
    {"name": "Subscriptions", "color": "#B10DC9", "keywords": ["spotify", "netflix", "hbo", "icloud"]},
    {"name": "Housing", "color": "#FF4136", "keywords": ["husleie", "rent", "fjordkraft", "tibber"]},
]

if len(sys.argv) < 2:
    sys.exit("usage: python -m budgeteer.scripts.seed_categories EMAIL")

with Session(engine) as session:
    user = session.query(User).filter_by(email=sys.argv[1].strip().lower()).first()
    if not user:
        sys.exit(f"No user with email {sys.argv[1]}; run add_user first.")
    for cat in categories:
        exists = session.query(Category).filter_by(user_id=user.id, name=cat["name"]).first()
        if not exists:
            session.add(Category(user_id=user.id, **cat))
    session.commit()
    print("Categories seeded.")
