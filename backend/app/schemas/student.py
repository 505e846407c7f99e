"""
Schémas Pydantic pour les élèves.
Les règles sont vérifiées dans l'ordre des champs ; seul le premier message
d'erreur est présenté à l'utilisateur (voir first_error_message).
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, field_validator

NAME_MIN, NAME_MAX = 2, 100
EMAIL_MAX = 255
REGISTRATION_MIN, REGISTRATION_MAX = 3, 50
AGE_MIN, AGE_MAX = 1, 150
AGE_PATTERN = re.compile(r"-?[0-9]+")

# Messages partagés par le service et le client HTTP
AGE_NOT_INTEGER = "L'âge doit être un nombre entier."
EMAIL_TAKEN = "Cet email est déjà enregistré."
REGISTRATION_TAKEN = "Ce matricule est déjà enregistré."
CREATE_FAILED = "Erreur lors de la création de l'élève."
UPDATE_FAILED = "Erreur lors de la mise à jour de l'élève."
INVALID_DATA = "Données invalides."

# Types d'erreur Pydantic → message affiché
ERROR_TYPE_MESSAGES = {
    "missing": "Champ obligatoire manquant.",
    "string_type": "Ce champ doit être un texte.",
    "int_type": "Ce champ doit être un nombre entier.",
    "int_parsing": "Ce champ doit être un nombre entier.",
    "uuid_type": "Identifiant invalide.",
    "uuid_parsing": "Identifiant invalide.",
    "json_invalid": "Le corps de la requête n'est pas un JSON valide.",
    "model_type": INVALID_DATA,
    "model_attributes_type": INVALID_DATA,
}


class StudentCreate(BaseModel):
    """Schéma de création d'un élève (POST /students)."""
    name: str
    email: str
    registration: str
    age: int
    # Propriétaire déclaré : facultatif, doit être l'utilisateur connecté s'il est fourni
    owner_id: Optional[uuid.UUID] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < NAME_MIN:
            raise ValueError(f"Le nom doit contenir au moins {NAME_MIN} caractères.")
        if len(v) > NAME_MAX:
            raise ValueError(f"Le nom ne peut pas dépasser {NAME_MAX} caractères.")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError("Email invalide.")
        if len(v) > EMAIL_MAX:
            raise ValueError(f"L'email ne peut pas dépasser {EMAIL_MAX} caractères.")
        return v

    @field_validator("registration")
    @classmethod
    def check_registration(cls, v: str) -> str:
        v = v.strip()
        if len(v) < REGISTRATION_MIN:
            raise ValueError(f"Le matricule doit contenir au moins {REGISTRATION_MIN} caractères.")
        if len(v) > REGISTRATION_MAX:
            raise ValueError(f"Le matricule ne peut pas dépasser {REGISTRATION_MAX} caractères.")
        return v

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v):
        # Accepte 20, "20" ou 20.0 ; refuse les booléens, les décimales et les chiffres non ASCII
        if isinstance(v, bool):
            raise ValueError(AGE_NOT_INTEGER)
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and AGE_PATTERN.fullmatch(v.strip()):
            return int(v.strip())
        raise ValueError(AGE_NOT_INTEGER)

    @field_validator("age")
    @classmethod
    def check_age(cls, v: int) -> int:
        if v < AGE_MIN:
            raise ValueError("L'âge doit être supérieur à 0.")
        if v > AGE_MAX:
            raise ValueError("Âge invalide.")
        return v


class StudentUpdate(StudentCreate):
    """Schéma de mise à jour (PUT /students/{id}) : les quatre champs sont revalidés."""


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève."""
    id: uuid.UUID
    name: str
    email: str
    registration: str
    age: int
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


def first_error_message(exc) -> str:
    """
    Retourne le message de la première règle violée, sans préfixe Pydantic.
    Accepte une ValidationError ou une RequestValidationError de FastAPI.
    Les erreurs de structure (champ absent, mauvais type) sont traduites.
    """
    errors = exc.errors()
    if not errors:
        return INVALID_DATA
    error = errors[0]
    if error.get("type") in ERROR_TYPE_MESSAGES:
        return ERROR_TYPE_MESSAGES[error["type"]]
    message = error.get("msg", INVALID_DATA)
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message
