from sqlalchemy import Column, ForeignKey, Integer, Text, UniqueConstraint
from courtside.db.base import Base


class ParentChildRelation(Base):
    __tablename__ = "parent_child_relations"

    id = Column(Integer, primary_key=True)
    parent_id = Column(Text, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    child_id = Column(Text, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
    )
