"""
Service du profil : lecture et modification par son seul propriétaire.
La création est faite par le hook d'inscription, la suppression par cascade.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.models.profile import Profile
from app.schemas.auth import ProfileUpdate
from app.services.access import Identity


def get_profile(db: Session, identity: Identity) -> Optional[Profile]:
    return db.get(Profile, identity.user_id)


def update_profile(db: Session, identity: Identity, data: ProfileUpdate) -> Optional[Profile]:
    profile = db.get(Profile, identity.user_id)
    if profile is None:
        return None
    profile.name = data.name
    db.commit()
    db.refresh(profile)
    return profile
