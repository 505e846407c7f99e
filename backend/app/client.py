"""
Client Python de l'API : validation du formulaire avant envoi, appels CRUD
et traduction de chaque résultat en message utilisateur.

La session est une valeur explicite (AuthSessionState) acquise à la connexion
et invalidée à la déconnexion ou dès qu'une requête répond 401. Les abonnés
(on_auth_state_change) sont prévenus pour pouvoir rediriger vers la connexion.

Usage :
    client = StudentManagerClient("http://localhost:8000")
    client.on_auth_state_change(lambda event, session: ...)
    client.sign_in("prof@ecole.be", "secret")
    result = client.save_student({"name": "Ana Silva", "email": "ana@x.com",
                                  "registration": "M001", "age": "20"})
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.schemas.student import CREATE_FAILED, UPDATE_FAILED, StudentCreate, first_error_message

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Utilisateur non authentifié."
UNEXPECTED_ERROR = "Une erreur est survenue. Veuillez réessayer."
LOAD_FAILED = "Erreur lors du chargement des élèves."
DELETE_FAILED = "Erreur lors de la suppression de l'élève."


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthSessionState:
    """Session courante côté client."""
    access_token: str
    user_id: uuid.UUID
    email: str
    expires_at: datetime


@dataclass
class ActionResult:
    ok: bool
    message: str
    data: Any = None


AuthCallback = Callable[[AuthEvent, Optional[AuthSessionState]], None]


class Subscription:
    """Abonnement aux changements de session ; unsubscribe() pour l'arrêter."""

    def __init__(self, listeners: List[AuthCallback], callback: AuthCallback):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class StudentManagerClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._session: Optional[AuthSessionState] = None
        self._listeners: List[AuthCallback] = []

    # --- Session ---

    @property
    def session(self) -> Optional[AuthSessionState]:
        return self._session

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _emit(self, event: AuthEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, self._session)
            except Exception:
                logger.exception("Erreur dans un abonné de session (%s)", event.value)

    def _invalidate(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)

    def _headers(self) -> Dict[str, str]:
        if self._session is None:
            return {}
        return {"Authorization": f"Bearer {self._session.access_token}"}

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = self._http.request(method, path, headers=self._headers(), **kwargs)
        if response.status_code == 401:
            self._invalidate()
        return response

    @staticmethod
    def _detail(response: httpx.Response, default: str) -> str:
        try:
            detail = response.json().get("detail")
        except ValueError:
            return default
        return detail if isinstance(detail, str) else default

    # --- Authentification ---

    def sign_up(self, email: str, password: str, name: Optional[str] = None) -> ActionResult:
        try:
            response = self._http.post(
                "/api/v1/auth/sign-up",
                json={"email": email, "password": password, "name": name},
            )
        except httpx.HTTPError as exc:
            logger.warning("Inscription impossible : %s", exc)
            return ActionResult(False, UNEXPECTED_ERROR)
        if response.status_code != 201:
            return ActionResult(False, self._detail(response, UNEXPECTED_ERROR))
        return ActionResult(True, "Compte créé avec succès !", response.json())

    def sign_in(self, email: str, password: str) -> ActionResult:
        try:
            response = self._http.post(
                "/api/v1/auth/sign-in", json={"email": email, "password": password}
            )
        except httpx.HTTPError as exc:
            logger.warning("Connexion impossible : %s", exc)
            return ActionResult(False, UNEXPECTED_ERROR)
        if response.status_code != 200:
            return ActionResult(False, self._detail(response, UNEXPECTED_ERROR))

        payload = response.json()
        self._session = AuthSessionState(
            access_token=payload["access_token"],
            user_id=uuid.UUID(payload["user_id"]),
            email=payload["email"],
            expires_at=datetime.fromisoformat(payload["expires_at"].replace("Z", "+00:00")),
        )
        self._emit(AuthEvent.SIGNED_IN)
        return ActionResult(True, "Connexion réussie.", self._session)

    def sign_out(self) -> ActionResult:
        """Révoque la session côté serveur puis l'oublie localement, même si l'appel échoue."""
        if self._session is not None:
            try:
                self._request("POST", "/api/v1/auth/sign-out")
            except httpx.HTTPError as exc:
                logger.warning("Déconnexion serveur impossible : %s", exc)
        self._invalidate()
        return ActionResult(True, "Déconnexion réussie.")

    def get_user(self) -> Optional[AuthSessionState]:
        """Vérifie la session auprès du serveur ; None si elle n'est plus valide."""
        if self._session is None:
            return None
        try:
            self._request("GET", "/api/v1/auth/me")
        except httpx.HTTPError as exc:
            logger.warning("Vérification de session impossible : %s", exc)
        return self._session

    # --- Élèves ---

    def list_students(self) -> ActionResult:
        if self._session is None:
            return ActionResult(False, NOT_AUTHENTICATED, [])
        try:
            response = self._request("GET", "/api/v1/students")
        except httpx.HTTPError as exc:
            logger.warning("Chargement des élèves impossible : %s", exc)
            return ActionResult(False, LOAD_FAILED, [])
        if response.status_code != 200:
            return ActionResult(False, LOAD_FAILED, [])
        return ActionResult(True, "", response.json())

    def save_student(self, form: Dict[str, Any], student_id: Optional[uuid.UUID] = None) -> ActionResult:
        """
        Valide le formulaire puis crée (student_id absent) ou met à jour l'élève.
        Rien n'est envoyé si la validation échoue ou si l'utilisateur n'est pas connecté.
        """
        try:
            validated = StudentCreate(**form)
        except ValidationError as exc:
            return ActionResult(False, first_error_message(exc))

        if self._session is None:
            return ActionResult(False, NOT_AUTHENTICATED)

        payload = validated.model_dump(mode="json", exclude={"owner_id"})
        try:
            if student_id is None:
                payload["owner_id"] = str(self._session.user_id)
                response = self._request("POST", "/api/v1/students", json=payload)
            else:
                response = self._request("PUT", f"/api/v1/students/{student_id}", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Enregistrement de l'élève impossible : %s", exc)
            return ActionResult(False, UNEXPECTED_ERROR)

        fallback = CREATE_FAILED if student_id is None else UPDATE_FAILED
        if response.status_code in (409, 422):
            return ActionResult(False, self._detail(response, fallback))
        if response.status_code == 401:
            return ActionResult(False, NOT_AUTHENTICATED)
        if response.status_code not in (200, 201):
            return ActionResult(False, fallback)

        if student_id is None:
            return ActionResult(True, "Élève créé avec succès !", response.json())
        return ActionResult(True, "Élève mis à jour avec succès !", response.json())

    def delete_student(self, student_id: uuid.UUID) -> ActionResult:
        if self._session is None:
            return ActionResult(False, NOT_AUTHENTICATED)
        try:
            response = self._request("DELETE", f"/api/v1/students/{student_id}")
        except httpx.HTTPError as exc:
            logger.warning("Suppression de l'élève impossible : %s", exc)
            return ActionResult(False, DELETE_FAILED)
        if response.status_code != 204:
            return ActionResult(False, DELETE_FAILED)
        return ActionResult(True, "Élève supprimé avec succès !")

    def close(self) -> None:
        self._http.close()
