"""
Router du profil de l'utilisateur connecté (lecture et modification du nom).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.schemas.auth import ProfileResponse, ProfileUpdate
from app.services import profile_service
from app.services.access import Identity

router = APIRouter(prefix="/api/v1/profile", tags=["Profil"])


@router.get("", response_model=ProfileResponse, summary="Mon profil")
def get_profile(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    profile = profile_service.get_profile(db, identity)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profil introuvable.")
    return profile


@router.put("", response_model=ProfileResponse, summary="Modifier mon profil")
def update_profile(
    data: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    profile = profile_service.update_profile(db, identity, data)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profil introuvable.")
    return profile
