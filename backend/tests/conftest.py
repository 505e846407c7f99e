"""
Configuration partagée pour tous les tests.
- client : BDD mockée et identité forcée (tests de routers, services patchés) ;
- anon_client : BDD mockée, sans identité (vérifie les 401) ;
- db / api : vraie base SQLite en mémoire pour les contraintes, hooks et scénarios.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db, make_engine
from app.dependencies import get_current_identity
from app.main import app
from app.services.access import Identity


@pytest.fixture
def identity():
    return Identity(user_id=uuid.uuid4(), email="prof@ecole.be", session_id=uuid.uuid4())


@pytest.fixture
def client(identity):
    """Client HTTP de test avec la BDD mockée et un utilisateur connecté."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_identity] = lambda: identity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client():
    """Client HTTP de test sans jeton : la vraie dépendance d'authentification s'applique."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c, mock_db
    app.dependency_overrides.clear()


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def api(session_factory):
    """Client HTTP branché sur la base SQLite en mémoire."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
