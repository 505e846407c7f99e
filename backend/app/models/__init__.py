# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, la FK students.owner_id → profiles.id échoue
# avec NoReferencedTableError si profile.py n'est pas chargé avant student.py.

from app.models.user import AuthSession, User  # noqa: F401  — doit précéder profile
from app.models.profile import Profile  # noqa: F401
from app.models.student import Student  # noqa: F401
from app.models import events  # noqa: F401  — enregistre les hooks (profil auto, updated_at)
