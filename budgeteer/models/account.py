from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, UniqueConstraint
from budgeteer.db import Base
from datetime import datetime
from sqlalchemy.orm import relationship, backref

class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "bank_id", "gocardless_account_id", name="uq_account_user_bank_remote"),
    )

    id = Column(Integer, primary_key=True)
    gocardless_account_id = Column(String, nullable=True) # NULL for manually added accounts

    bank_id = Column(Integer, ForeignKey("banks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String, nullable=False)
    owner_name = Column(String)
    bban = Column(String)
    account_type = Column(String) # debit | credit, set for manually added accounts
    # [{"amount": "12.00", "currency": "NOK", "type": "interimAvailable", "as_of": "2024-01-31"}]
    balances = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bank = relationship(
        "Bank",
        backref=backref("accounts", cascade="all, delete-orphan", passive_deletes=True),
    )
    user = relationship("User")

    @property
    def is_manual(self) -> bool:
        return self.gocardless_account_id is None
