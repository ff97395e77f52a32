from sqlalchemy import Boolean, Column, Integer, Text
from courtside.db.base import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Text, primary_key=True)  # id issued by the identity provider
    name = Column(Text)
    email = Column(Text, unique=True)
    role = Column(Text, nullable=False, default="player")  # 'player' | 'parent'
    is_admin = Column(Boolean, nullable=False, default=False)
    jersey_number = Column(Integer)
