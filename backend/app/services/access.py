"""
Contrôle d'accès par propriétaire : chaque lecture ou écriture d'un élève
est filtrée par owner_id == utilisateur authentifié.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.student import Student


class OwnershipError(PermissionError):
    """Le propriétaire déclaré n'est pas l'utilisateur authentifié."""


@dataclass(frozen=True)
class Identity:
    """Utilisateur authentifié extrait du jeton de la requête."""
    user_id: uuid.UUID
    email: str
    session_id: Optional[uuid.UUID] = None


def owned_by(identity: Identity):
    """Prédicat obligatoire à ajouter à toute requête sur students."""
    return Student.owner_id == identity.user_id


def ensure_owner(identity: Identity, owner_id: Optional[uuid.UUID]) -> uuid.UUID:
    """
    Retourne l'identifiant du propriétaire à enregistrer.
    Lève OwnershipError si un autre propriétaire est déclaré.
    """
    if owner_id is not None and owner_id != identity.user_id:
        raise OwnershipError("Vous ne pouvez gérer que vos propres élèves.")
    return identity.user_id


def get_owned_student(db: Session, identity: Identity, student_id: uuid.UUID) -> Optional[Student]:
    """Retourne l'élève s'il appartient à l'utilisateur, None sinon (inexistant ou non autorisé)."""
    return db.execute(
        select(Student).where(Student.id == student_id, owned_by(identity))
    ).scalar_one_or_none()
