"""
Hooks SQLAlchemy exécutés dans la même transaction que l'écriture :
- création automatique du profil à l'inscription d'un utilisateur ;
- maintenance de updated_at (et protection de created_at) à chaque mise à jour.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import event, inspect, insert

from app.database import utcnow
from app.models.profile import Profile
from app.models.student import Student
from app.models.user import User

logger = logging.getLogger(__name__)


def _as_aware(value: datetime) -> datetime:
    # SQLite renvoie des datetimes naïfs ; on les considère en UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@event.listens_for(User, "after_insert")
def provision_profile(mapper, connection, target: User) -> None:
    """
    Crée exactement un profil pour le nouvel utilisateur.
    Une erreur ici annule l'inscription entière (même connexion, même transaction).
    """
    metadata = target.user_metadata or {}
    name = metadata.get("name") or ""
    now = utcnow()
    connection.execute(
        insert(Profile.__table__).values(
            id=target.id,
            name=str(name),
            email=target.email,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("Profil créé pour l'utilisateur %s", target.id)


def touch_updated_at(mapper, connection, target) -> None:
    """Force updated_at à maintenant (jamais en arrière) et fige created_at."""
    state = inspect(target)

    created = state.attrs.created_at.history
    if created.deleted:
        target.created_at = created.deleted[0]

    updated = state.attrs.updated_at.history
    previous = [v for v in (updated.deleted or updated.unchanged) if v is not None]
    now = utcnow()
    if previous:
        now = max(now, _as_aware(previous[0]))
    target.updated_at = now


event.listen(Profile, "before_update", touch_updated_at)
event.listen(Student, "before_update", touch_updated_at)
