"""
Dépendances FastAPI partagées : identité de l'utilisateur authentifié.
Toute route protégée est refusée (401) avant le moindre accès aux données élèves.
"""

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.access import Identity
from app.services.auth_service import AuthenticationError, get_identity

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Identity:
    """Extrait l'identité du header Authorization: Bearer <jeton>."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Utilisateur non authentifié.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return get_identity(db, credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e), headers={"WWW-Authenticate": "Bearer"})
