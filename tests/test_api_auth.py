from projecthub.auth.auth_router import create_access_token
from projecthub.profile import profile_router

REGISTRATION = {
    "username": "ioana",
    "name": "Ioana",
    "email": "ioana@example.com",
    "password": "s3cret",
    "position": "student",
    "organization": "UBB",
}


def _register(client, **overrides):
    return client.post("/api/profile", json={**REGISTRATION, **overrides})


def test_health(client):
    assert client.get("/api/health").json()["status"] == "OK"


def test_register_then_login(client):
    res = _register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["data"]["username"] == "ioana"
    assert body["token"]

    for identifier in ("ioana", "ioana@example.com"):
        res = client.post("/api/login", json={"emailOrUsername": identifier, "password": "s3cret"})
        assert res.status_code == 200
        assert res.json()["data"]["userId"] == body["data"]["userId"]


def test_login_errors(client):
    _register(client)

    res = client.post("/api/login", json={"emailOrUsername": "nobody", "password": "x"})
    assert res.status_code == 404

    res = client.post("/api/login", json={"emailOrUsername": "ioana", "password": "wrong"})
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Incorrect password. Please try again."}


def test_duplicate_registration_conflicts(client):
    _register(client)
    res = _register(client, email="other@example.com")
    assert res.status_code == 409


def test_registration_validation_messages(client):
    payload = dict(REGISTRATION)
    del payload["name"]
    res = client.post("/api/profile", json=payload)
    assert res.status_code == 400
    assert res.json()["message"] == "name is required"

    res = _register(client, position="wizard")
    assert res.status_code == 400
    assert res.json()["message"] == "Position must be either student, teacher, or other"


def test_verify_requires_token(client):
    res = client.get("/api/verify")
    assert res.status_code == 401
    assert res.json()["message"] == "Access denied. No token provided."


def test_verify_accepts_bearer_and_header(client):
    token = _register(client).json()["token"]

    assert client.get("/api/verify", headers={"Authorization": f"Bearer {token}"}).status_code == 200
    assert client.get("/api/verify", headers={"x-access-token": token}).status_code == 200


def test_expired_token_is_flagged(client, make_user):
    user = make_user("old")
    token = create_access_token(user.id, user.username, user.email, minutes=-5)

    res = client.get("/api/verify", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 401
    assert res.json()["expired"] is True


def test_garbage_token_is_rejected(client):
    res = client.get("/api/verify", headers={"Authorization": "Bearer not.a.token"})
    assert res.status_code == 401
    assert "expired" not in res.json()


def test_profile_is_self_service(client, make_user, auth):
    alice, bob = make_user("alice"), make_user("bob")

    res = client.patch(f"/api/profile/{bob.id}", json={"name": "Hacked"}, headers=auth(alice))
    assert res.status_code == 403

    res = client.patch(f"/api/profile/{alice.id}", json={"name": "Alice B"}, headers=auth(alice))
    assert res.status_code == 200
    assert client.get(f"/api/profile/{alice.id}").json()["data"]["name"] == "Alice B"

    res = client.patch(f"/api/profile/{alice.id}", json={"username": "bob"}, headers=auth(alice))
    assert res.status_code == 409


def test_deleting_profile_removes_projects(client, db, make_user, make_project, auth):
    alice = make_user("alice")
    project = make_project(alice)

    res = client.delete(f"/api/profile/{alice.id}", headers=auth(alice))

    assert res.status_code == 200
    assert client.get(f"/api/projects/{project.id}").status_code == 404


def test_profile_patch_rejects_null_for_required_fields(client, make_user, auth):
    alice = make_user("alice")

    for field in ("username", "email", "password", "position"):
        res = client.patch(f"/api/profile/{alice.id}", json={field: None}, headers=auth(alice))
        assert res.status_code == 400
        assert res.json()["message"] == f"{field} cannot be null"

    assert client.get(f"/api/profile/{alice.id}").json()["data"]["username"] == "alice"


def test_concurrent_registration_is_a_conflict(client, monkeypatch):
    _register(client)

    # both requests passed the lookup before either inserted
    monkeypatch.setattr(profile_router, "_identity_taken", lambda *args: False)
    res = _register(client, email="other@example.com")

    assert res.status_code == 409
    assert res.json()["message"] == "Username or email already exists"
