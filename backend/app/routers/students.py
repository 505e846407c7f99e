"""
Router pour les élèves de l'utilisateur connecté.
GET    /api/v1/students        — liste (plus récent d'abord)
GET    /api/v1/students/{id}   — détail
POST   /api/v1/students        — création
PUT    /api/v1/students/{id}   — mise à jour
DELETE /api/v1/students/{id}   — suppression
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.schemas.student import StudentCreate, StudentResponse, StudentUpdate
from app.services import student_service
from app.services.access import Identity, OwnershipError

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])

NOT_FOUND = "Élève introuvable."


def _write_error(e: ValueError) -> HTTPException:
    if isinstance(e, student_service.StudentConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[StudentResponse], summary="Lister mes élèves")
def list_students(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Retourne les élèves de l'utilisateur, triés par date de création décroissante."""
    return student_service.list_students(db, identity)


@router.get("/{student_id}", response_model=StudentResponse, summary="Détail d'un élève")
def get_student(
    student_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    student = student_service.get_student(db, identity, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return student


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève")
def create_student(
    data: StudentCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Crée un élève rattaché à l'utilisateur connecté.
    409 si l'email ou le matricule est déjà utilisé, 403 si un autre propriétaire est déclaré.
    """
    try:
        return student_service.create_student(db, identity, data)
    except OwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise _write_error(e)


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Remplace nom, email, matricule et âge d'un élève de l'utilisateur."""
    try:
        student = student_service.update_student(db, identity, student_id, data)
    except OwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise _write_error(e)
    if student is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return student


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_student(
    student_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Supprime définitivement un élève de l'utilisateur."""
    if not student_service.delete_student(db, identity, student_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
