"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from backend.database import Base


class User(Base):
    """Represents a professional (tenant) who owns customers and appointments."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String, unique=True, index=True, nullable=False)  # identity provider id
    email = Column(String, unique=True, index=True)
    name = Column(String)
    phone = Column(String)
    created_at = Column(DateTime, server_default=func.now())
