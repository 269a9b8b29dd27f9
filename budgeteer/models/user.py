from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from budgeteer.db import Base

# Rows are created by scripts/add_user.py; only these emails may log in.

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    avatar = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
