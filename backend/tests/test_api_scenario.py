"""
Scénarios de bout en bout sur une base SQLite en mémoire :
inscription, connexion, CRUD élèves et isolation entre utilisateurs.
"""

import time
from datetime import datetime, timezone

VALID = {"name": "Ana Silva", "email": "ana@x.com", "registration": "M001", "age": 20}


def parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def register(api, email: str, name: str = "Prof") -> dict:
    resp = api.post("/api/v1/auth/sign-up", json={"email": email, "password": "secret123", "name": name})
    assert resp.status_code == 201
    resp = api.post("/api/v1/auth/sign-in", json={"email": email, "password": "secret123"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def test_scenario_ana_silva(api):
    headers = register(api, "prof@ecole.be")

    # Création → apparaît en tête de liste
    resp = api.post("/api/v1/students", json=VALID, headers=headers)
    assert resp.status_code == 201
    ana = resp.json()
    listing = api.get("/api/v1/students", headers=headers).json()
    assert listing[0]["id"] == ana["id"]

    # Même email, autre matricule → conflit sur l'email, liste inchangée
    resp = api.post("/api/v1/students", json={**VALID, "registration": "M002"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cet email est déjà enregistré."
    assert api.get("/api/v1/students", headers=headers).json() == listing

    # Mise à jour de l'âge → 21 et updated_at avance
    time.sleep(0.01)
    resp = api.put(f"/api/v1/students/{ana['id']}", json={**VALID, "age": 21}, headers=headers)
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["age"] == 21
    assert parse_ts(updated["updated_at"]) > parse_ts(ana["updated_at"])
    assert parse_ts(updated["created_at"]) == parse_ts(ana["created_at"])
    assert api.get("/api/v1/students", headers=headers).json()[0]["age"] == 21

    # Suppression → absent de la liste
    resp = api.delete(f"/api/v1/students/{ana['id']}", headers=headers)
    assert resp.status_code == 204
    ids = [s["id"] for s in api.get("/api/v1/students", headers=headers).json()]
    assert ana["id"] not in ids


def test_isolation_entre_utilisateurs(api):
    alice = register(api, "alice@ecole.be", "Alice")
    bob = register(api, "bob@ecole.be", "Bob")

    bob_student = api.post(
        "/api/v1/students", json={**VALID, "email": "b@x.com", "registration": "B-001"}, headers=bob
    ).json()
    api.post("/api/v1/students", json=VALID, headers=alice)

    alice_list = api.get("/api/v1/students", headers=alice).json()
    assert bob_student["id"] not in [s["id"] for s in alice_list]
    assert len(alice_list) == 1

    # Lecture, modification et suppression d'un élève d'autrui → 404
    assert api.get(f"/api/v1/students/{bob_student['id']}", headers=alice).status_code == 404
    resp = api.put(f"/api/v1/students/{bob_student['id']}",
                   json={**VALID, "email": "pirate@x.com", "registration": "P-001"}, headers=alice)
    assert resp.status_code == 404
    assert api.delete(f"/api/v1/students/{bob_student['id']}", headers=alice).status_code == 404
    assert api.get(f"/api/v1/students/{bob_student['id']}", headers=bob).json()["name"] == "Ana Silva"


def test_creation_pour_un_autre_proprietaire_refusee(api):
    alice = register(api, "alice@ecole.be")
    register(api, "bob@ecole.be")
    bob_id = api.post("/api/v1/auth/sign-in", json={"email": "bob@ecole.be", "password": "secret123"}).json()["user_id"]

    resp = api.post("/api/v1/students", json={**VALID, "owner_id": bob_id}, headers=alice)
    assert resp.status_code == 403
    assert api.get("/api/v1/students", headers=alice).json() == []


def test_matricule_duplique_entre_utilisateurs(api):
    """L'unicité est globale, pas par utilisateur."""
    alice = register(api, "alice@ecole.be")
    bob = register(api, "bob@ecole.be")
    api.post("/api/v1/students", json=VALID, headers=alice)

    resp = api.post("/api/v1/students", json={**VALID, "email": "autre@x.com"}, headers=bob)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Ce matricule est déjà enregistré."


def test_profil_cree_et_modifiable(api):
    headers = register(api, "prof@ecole.be", name="Maria")

    profile = api.get("/api/v1/profile", headers=headers).json()
    assert profile["name"] == "Maria"
    assert profile["email"] == "prof@ecole.be"

    resp = api.put("/api/v1/profile", json={"name": "  Maria Souza "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Maria Souza"
    assert parse_ts(resp.json()["updated_at"]) >= parse_ts(profile["updated_at"])


def test_deconnexion_invalide_le_jeton(api):
    headers = register(api, "prof@ecole.be")
    assert api.get("/api/v1/auth/me", headers=headers).status_code == 200

    assert api.post("/api/v1/auth/sign-out", headers=headers).status_code == 204
    assert api.get("/api/v1/auth/me", headers=headers).status_code == 401
    assert api.get("/api/v1/students", headers=headers).status_code == 401


def test_suppression_du_compte(api):
    headers = register(api, "prof@ecole.be")
    api.post("/api/v1/students", json=VALID, headers=headers)

    assert api.delete("/api/v1/auth/me", headers=headers).status_code == 204
    assert api.get("/api/v1/students", headers=headers).status_code == 401

    # L'email et le matricule sont libérés par la cascade
    other = register(api, "autre@ecole.be")
    assert api.post("/api/v1/students", json=VALID, headers=other).status_code == 201
