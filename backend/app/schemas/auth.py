"""
Schémas Pydantic pour l'authentification et le profil.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

PASSWORD_MIN = 6
PROFILE_NAME_MAX = 100


class SignUpRequest(BaseModel):
    """Inscription (POST /auth/sign-up). Le nom alimente le profil créé automatiquement."""
    email: EmailStr
    password: str
    name: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN:
            raise ValueError(f"Le mot de passe doit contenir au moins {PASSWORD_MIN} caractères.")
        return v

    @field_validator("name")
    @classmethod
    def name_length(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) > PROFILE_NAME_MAX:
            raise ValueError(f"Le nom ne peut pas dépasser {PROFILE_NAME_MAX} caractères.")
        return v


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user_id: uuid.UUID
    email: str


class IdentityResponse(BaseModel):
    """Utilisateur courant (GET /auth/me)."""
    user_id: uuid.UUID
    email: str


class ProfileResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Mise à jour du profil par son propriétaire (PUT /profile)."""
    name: str

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) > PROFILE_NAME_MAX:
            raise ValueError(f"Le nom ne peut pas dépasser {PROFILE_NAME_MAX} caractères.")
        return v
