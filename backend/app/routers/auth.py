"""
Router d'authentification.
POST   /api/v1/auth/sign-up   — inscription (profil créé automatiquement)
POST   /api/v1/auth/sign-in   — connexion, retourne un jeton Bearer
POST   /api/v1/auth/sign-out  — révocation de la session courante
GET    /api/v1/auth/me        — utilisateur courant
DELETE /api/v1/auth/me        — suppression du compte (cascade profil + élèves)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.schemas.auth import IdentityResponse, ProfileResponse, SignInRequest, SignUpRequest, TokenResponse
from app.services import auth_service, profile_service
from app.services.access import Identity

router = APIRouter(prefix="/api/v1/auth", tags=["Authentification"])


@router.post("/sign-up", response_model=ProfileResponse, status_code=201, summary="Créer un compte")
def sign_up(data: SignUpRequest, db: Session = Depends(get_db)):
    """Crée l'utilisateur et retourne le profil provisionné dans la même transaction."""
    try:
        user = auth_service.sign_up(db, data.email, data.password, data.name)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return profile_service.get_profile(db, Identity(user_id=user.id, email=user.email))


@router.post("/sign-in", response_model=TokenResponse, summary="Se connecter")
def sign_in(data: SignInRequest, db: Session = Depends(get_db)):
    try:
        token, auth_session, user = auth_service.sign_in(db, data.email, data.password)
    except auth_service.AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return TokenResponse(
        access_token=token,
        expires_at=auth_session.expires_at,
        user_id=user.id,
        email=user.email,
    )


@router.post("/sign-out", status_code=204, summary="Se déconnecter")
def sign_out(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    auth_service.sign_out(db, identity)


@router.get("/me", response_model=IdentityResponse, summary="Utilisateur courant")
def me(identity: Identity = Depends(get_current_identity)):
    return IdentityResponse(user_id=identity.user_id, email=identity.email)


@router.delete("/me", status_code=204, summary="Supprimer mon compte")
def delete_me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """Supprime l'utilisateur ; profil, sessions et élèves sont supprimés en cascade."""
    if not auth_service.delete_account(db, identity):
        raise HTTPException(status_code=404, detail="Utilisateur introuvable.")
