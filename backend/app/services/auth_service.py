"""
Service d'authentification : inscription, connexion, déconnexion,
résolution du jeton en identité et suppression de compte.

Les jetons sont signés en HMAC-SHA256 (payload JSON encodé en base64url)
et rattachés à une AuthSession révocable côté serveur.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import utcnow
from app.models.user import AuthSession, User
from app.services.access import Identity

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Email ou mot de passe incorrect."
INVALID_TOKEN = "Session invalide ou expirée."


class AuthenticationError(Exception):
    """Identifiants refusés ou jeton invalide (HTTP 401)."""


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(raw: str) -> bytes:
    padding = "=" * ((4 - len(raw) % 4) % 4)
    return base64.urlsafe_b64decode(raw + padding)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Mots de passe ---

def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Retourne 'pbkdf2_sha256$<itérations>$<sel>$<empreinte>'."""
    iterations = iterations or settings.PASSWORD_HASH_ITERATIONS
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${_b64url_encode(salt)}${_b64url_encode(digest)}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_b64, digest_b64 = encoded.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    actual = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        _b64url_decode(salt_b64),
        int(iterations),
    )
    return hmac.compare_digest(actual, _b64url_decode(digest_b64))


# --- Jetons ---

def _sign(payload_b64: str) -> str:
    sig = hmac.new(
        settings.SECRET_KEY.encode("utf-8"),
        payload_b64.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return _b64url_encode(sig)


def create_access_token(user_id: uuid.UUID, session_id: uuid.UUID, expires_at: datetime) -> str:
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": int(utcnow().timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    payload_raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    payload_b64 = _b64url_encode(payload_raw)
    return f"{payload_b64}.{_sign(payload_b64)}"


def decode_access_token(token: str) -> Optional[Tuple[uuid.UUID, uuid.UUID]]:
    """Vérifie signature et expiration. Retourne (user_id, session_id) ou None."""
    try:
        payload_b64, sig_b64 = token.split(".", 1)
    except ValueError:
        return None

    # Comparaison sur des octets : un jeton non ASCII est simplement invalide
    if not hmac.compare_digest(_sign(payload_b64).encode("utf-8"), sig_b64.encode("utf-8")):
        return None

    try:
        payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
        user_id = uuid.UUID(payload["sub"])
        session_id = uuid.UUID(payload["sid"])
        exp = int(payload["exp"])
    except (ValueError, KeyError, TypeError):
        return None

    if exp < int(utcnow().timestamp()):
        return None
    return user_id, session_id


# --- Opérations ---

def sign_up(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    """
    Crée l'utilisateur ; le profil est inséré par le hook after_insert
    dans la même transaction. Lève ValueError si l'email est déjà utilisé.
    """
    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        user_metadata={"name": name} if name else {},
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Un compte existe déjà avec cet email.")
    db.refresh(user)
    logger.info("Nouvel utilisateur inscrit : %s", user.id)
    return user


def sign_in(db: Session, email: str, password: str) -> Tuple[str, AuthSession, User]:
    """Ouvre une session et retourne (jeton, session, utilisateur)."""
    user = db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Échec de connexion pour %s", email)
        raise AuthenticationError(INVALID_CREDENTIALS)

    expires_at = utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    auth_session = AuthSession(id=uuid.uuid4(), user_id=user.id, expires_at=expires_at)
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)

    token = create_access_token(user.id, auth_session.id, expires_at)
    logger.info("Connexion de l'utilisateur %s (session %s)", user.id, auth_session.id)
    return token, auth_session, user


def get_identity(db: Session, token: str) -> Identity:
    """Résout un jeton en identité. Lève AuthenticationError si la session n'est plus valide."""
    decoded = decode_access_token(token)
    if decoded is None:
        raise AuthenticationError(INVALID_TOKEN)
    user_id, session_id = decoded

    auth_session = db.get(AuthSession, session_id)
    if (
        auth_session is None
        or auth_session.user_id != user_id
        or auth_session.revoked_at is not None
        or _as_aware(auth_session.expires_at) <= utcnow()
    ):
        raise AuthenticationError(INVALID_TOKEN)

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError(INVALID_TOKEN)
    return Identity(user_id=user.id, email=user.email, session_id=session_id)


def sign_out(db: Session, identity: Identity) -> None:
    """Révoque la session courante."""
    if identity.session_id is None:
        return
    auth_session = db.get(AuthSession, identity.session_id)
    if auth_session is None or auth_session.revoked_at is not None:
        return
    auth_session.revoked_at = utcnow()
    db.commit()
    logger.info("Déconnexion de l'utilisateur %s", identity.user_id)


def delete_account(db: Session, identity: Identity) -> bool:
    """Supprime l'utilisateur ; profil, sessions et élèves suivent par cascade."""
    user = db.get(User, identity.user_id)
    if user is None:
        return False
    db.delete(user)
    db.commit()
    logger.info("Compte supprimé : %s", identity.user_id)
    return True
