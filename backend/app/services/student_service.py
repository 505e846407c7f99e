"""
Service métier pour la gestion des élèves d'un utilisateur.
Toutes les opérations passent par le prédicat de propriété (app.services.access).
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.student import Student
from app.schemas.student import (
    CREATE_FAILED,
    EMAIL_TAKEN,
    REGISTRATION_TAKEN,
    UPDATE_FAILED,
    StudentCreate,
    StudentUpdate,
)
from app.services.access import Identity, ensure_owner, get_owned_student, owned_by

logger = logging.getLogger(__name__)


# Contrainte d'unicité → champ en conflit
CONSTRAINT_FIELDS = {
    "uq_students_email": "email",
    "uq_students_registration": "registration",
}
FIELD_MESSAGES = {
    "email": EMAIL_TAKEN,
    "registration": REGISTRATION_TAKEN,
}


class StudentConflictError(ValueError):
    """Email ou matricule déjà utilisé par un autre élève."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class StudentWriteError(ValueError):
    """Écriture refusée par la base pour une autre raison (contrainte non identifiée)."""


def conflicting_field(exc: IntegrityError) -> Optional[str]:
    """
    Identifie le champ en double à partir de l'erreur du driver.
    Préfère le nom de contrainte (psycopg : diag.constraint_name) ;
    à défaut (SQLite), cherche la colonne dans le message.
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return CONSTRAINT_FIELDS.get(constraint)

    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return None
    for constraint, field in CONSTRAINT_FIELDS.items():
        if constraint in message or f"students.{field}" in message:
            return field
    return None


def _translate(exc: IntegrityError, fallback: str) -> ValueError:
    field = conflicting_field(exc)
    if field is not None:
        return StudentConflictError(field, FIELD_MESSAGES[field])
    logger.warning("Écriture élève refusée : %s", exc.orig)
    return StudentWriteError(fallback)


def list_students(db: Session, identity: Identity) -> list[Student]:
    """Retourne les élèves de l'utilisateur, du plus récent au plus ancien."""
    return db.execute(
        select(Student).where(owned_by(identity)).order_by(Student.created_at.desc())
    ).scalars().all()


def get_student(db: Session, identity: Identity, student_id: uuid.UUID) -> Optional[Student]:
    return get_owned_student(db, identity, student_id)


def create_student(db: Session, identity: Identity, data: StudentCreate) -> Student:
    """
    Crée un élève appartenant à l'utilisateur.
    Lève OwnershipError si un autre propriétaire est déclaré,
    StudentConflictError si l'email ou le matricule existe déjà.
    """
    owner_id = ensure_owner(identity, data.owner_id)
    student = Student(
        name=data.name,
        email=data.email,
        registration=data.registration,
        age=data.age,
        owner_id=owner_id,
    )
    db.add(student)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _translate(exc, CREATE_FAILED)
    db.refresh(student)
    logger.info("Élève %s créé par %s", student.id, identity.user_id)
    return student


def update_student(
    db: Session, identity: Identity, student_id: uuid.UUID, data: StudentUpdate
) -> Optional[Student]:
    """Remplace les quatre champs d'un élève. Retourne None si introuvable ou non autorisé."""
    student = get_owned_student(db, identity, student_id)
    if student is None:
        return None
    ensure_owner(identity, data.owner_id)

    student.name = data.name
    student.email = data.email
    student.registration = data.registration
    student.age = data.age

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _translate(exc, UPDATE_FAILED)
    db.refresh(student)
    return student


def delete_student(db: Session, identity: Identity, student_id: uuid.UUID) -> bool:
    """Supprime définitivement un élève. Retourne False si introuvable ou non autorisé."""
    student = get_owned_student(db, identity, student_id)
    if student is None:
        return False
    db.delete(student)
    db.commit()
    logger.info("Élève %s supprimé par %s", student_id, identity.user_id)
    return True
