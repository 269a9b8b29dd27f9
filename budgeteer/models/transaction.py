from sqlalchemy import Column, Integer, String, Numeric, Date, ForeignKey, UniqueConstraint, CheckConstraint
from budgeteer.db import Base
from sqlalchemy.orm import relationship, backref

SPENDING_TYPES = ("fixed", "variable")
WANT_OR_NEED = ("want", "need")

def _one_of(column, values):
    return f"{column} IS NULL OR {column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("user_id", "account_id", "gocardless_transaction_id", name="uq_transaction_user_account_remote"),
        CheckConstraint(_one_of("spending_type", SPENDING_TYPES), name="ck_transaction_spending_type"),
        CheckConstraint(_one_of("want_or_need", WANT_OR_NEED), name="ck_transaction_want_or_need"),
    )

    id = Column(Integer, primary_key=True)
    gocardless_transaction_id = Column(String, nullable=False) # remote id, or a synthetic content hash

    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    status = Column(String, nullable=False) # booked | pending
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    exchange_rate = Column(String)
    booking_date = Column(Date)
    value_date = Column(Date)

    creditor_name = Column(String)
    creditor_bban = Column(String)
    debtor_name = Column(String)
    debtor_bban = Column(String)
    description = Column(String) # free text used for keyword suggestions

    spending_type = Column(String) # fixed | variable
    want_or_need = Column(String) # want | need

    account = relationship(
        "Account",
        backref=backref("transactions", cascade="all, delete-orphan", passive_deletes=True),
    )
    bank = relationship("Bank")
    user = relationship("User")
    category = relationship("Category", backref="transactions")
