from sqlalchemy import Column, Integer, String, ForeignKey, JSON, UniqueConstraint
from budgeteer.db import Base
from sqlalchemy.orm import relationship

class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    color = Column(String)
    keywords = Column(JSON, nullable=False, default=list)
    category_group_id = Column(Integer, ForeignKey("category_groups.id", ondelete="SET NULL"), nullable=True)

    category_group = relationship("CategoryGroup", backref="categories")

    @property
    def match_keywords(self):
        return [k.strip().lower() for k in (self.keywords or []) if k and k.strip()]
