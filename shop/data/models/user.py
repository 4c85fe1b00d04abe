from sqlalchemy import Column, String
from shop.data.database import Base

class UserModel(Base):
    __tablename__ = "users"
    id = Column(String(64), primary_key=True)  # login name
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
