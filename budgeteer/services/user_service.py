import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from budgeteer.models import User
from budgeteer.utils.google_oauth import GoogleProfile

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name, "avatar": user.avatar}


def login_google_user(db: Session, profile: GoogleProfile) -> User:
    """Only pre-approved emails (rows added by scripts/add_user.py) may sign in."""
    user = db.query(User).filter(User.email == profile.email.lower()).first()
    if not user:
        logger.warning("Rejected login for %s", profile.email)
        raise HTTPException(status_code=403, detail="You are not authorized to access this site")

    user.name = profile.name or user.name
    user.avatar = profile.picture or user.avatar
    db.commit()
    db.refresh(user)
    return user


def add_user(db: Session, email: str, name: str = None) -> User:
    email = email.strip().lower()
    user = db.query(User).filter_by(email=email).first()
    if user:
        return user
    user = User(email=email, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
