"""
Modèle SQLAlchemy pour la table students.
Chaque élève appartient à exactement un profil (owner_id).
Les noms de contraintes servent à identifier le champ en conflit.
"""

import uuid
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)

from app.database import Base, utcnow
from app.schemas.student import AGE_MAX, AGE_MIN


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("email", name="uq_students_email"),
        UniqueConstraint("registration", name="uq_students_registration"),
        CheckConstraint(f"age >= {AGE_MIN} AND age <= {AGE_MAX}", name="ck_students_age_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    registration = Column(String(50), nullable=False)  # matricule
    age = Column(Integer, nullable=False)
    owner_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
