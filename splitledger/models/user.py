from sqlalchemy import Column, Integer, String
from splitledger.db.session import Base


# Owned by the account service; read here only to resolve participants.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
