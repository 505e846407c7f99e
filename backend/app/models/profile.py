"""
Modèle SQLAlchemy pour la table profiles (1-1 avec users, supprimé en cascade).
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from app.database import Base, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
