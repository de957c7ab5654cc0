"""User model definitions."""

from sqlalchemy import Column, Integer, String
from clinicbook.database import Base


class User(Base):
    """Represents a marketplace account (pet owner or clinic owner)."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    role = Column(String)  # user/admin
