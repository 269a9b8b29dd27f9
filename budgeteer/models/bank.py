from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from budgeteer.db import Base
from datetime import datetime
from sqlalchemy.orm import relationship, backref

class Bank(Base):
    __tablename__ = "banks"
    __table_args__ = (UniqueConstraint("user_id", "institution_id", name="uq_bank_user_institution"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    institution_id = Column(String, nullable=False) # from GoCardless, e.g. DNB_DNBANOKK

    name = Column(String, nullable=False)
    logo = Column(String)
    bic = Column(String)
    requisition_id = Column(String, nullable=True) # current consent

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship(
        "User",
        backref=backref("banks", cascade="all, delete-orphan", passive_deletes=True),
    )
