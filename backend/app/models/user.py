"""
Modèles SQLAlchemy pour l'identité : utilisateurs et sessions d'authentification.
Le profil associé est créé automatiquement à l'insertion (voir app.models.events).
"""

import uuid
from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Uuid

from app.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    user_metadata = Column(JSON, nullable=False, default=dict)  # ex. {"name": "Ana"}
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class AuthSession(Base):
    """Session ouverte à la connexion, révoquée à la déconnexion."""
    __tablename__ = "auth_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
