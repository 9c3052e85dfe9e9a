from fastapi.testclient import TestClient

from main import app
from utils.auth import create_session_cookie, hash_secret, parse_session_cookie, verify_secret


def test_hash_secret_round_trip():
    stored = hash_secret("1234")
    assert stored.startswith("pbkdf2_sha256$")
    assert verify_secret("1234", stored)
    assert not verify_secret("4321", stored)
    assert not verify_secret("1234", None)
    assert not verify_secret("1234", "garbage")


def test_session_cookie_rejects_tampering(app_env):
    cookie = create_session_cookie("child", "kid-1")
    session = parse_session_cookie(cookie)
    assert (session.role, session.user_id) == ("child", "kid-1")
    tampered = cookie.replace("child:", "parent:", 1)
    assert parse_session_cookie(tampered) is None
    assert parse_session_cookie(create_session_cookie("child", "kid-1", duration_minutes=-1)) is None


def test_parent_registers_adds_child_and_child_logs_in(app_env):
    parent = TestClient(app)
    registered = parent.post(
        "/auth/register", json={"email": "Pat@Example.com", "password": "password123", "name": "Pat"}
    )
    assert registered.status_code == 201
    family_code = registered.json()["family_code"]
    assert len(family_code) == 6
    assert parent.get("/auth/me").json()["role"] == "parent"

    duplicate = TestClient(app).post(
        "/auth/register", json={"email": "pat@example.com", "password": "password123", "name": "Pat"}
    )
    assert duplicate.status_code == 400

    child_id = parent.post("/children/", json={"name": "Ada", "grade_level": 3, "pin": "1234"}).json()["id"]
    kids = TestClient(app).get(f"/auth/children/{family_code.lower()}").json()
    assert kids == [{"id": child_id, "name": "Ada", "grade_level": 3}]

    child = TestClient(app)
    bad = child.post("/auth/child-login", json={"family_code": family_code, "child_id": child_id, "pin": "0000"})
    assert bad.status_code == 401
    good = child.post("/auth/child-login", json={"family_code": family_code, "child_id": child_id, "pin": "1234"})
    assert good.status_code == 200
    assert child.get(f"/children/{child_id}/coins").json() == {"balance": 0, "total_earned": 0, "current_streak": 0}
    assert child.get("/children/").status_code == 403

    login = TestClient(app).post("/auth/login", json={"email": "pat@example.com", "password": "wrong-pass"})
    assert login.status_code == 401


def test_unknown_family_code_is_not_found(app_env):
    assert TestClient(app).get("/auth/children/NOPE42").status_code == 404


def test_anonymous_requests_are_rejected(app_env):
    client = TestClient(app)
    assert client.get("/assignments/").status_code == 401
    assert client.get("/children/stats").status_code == 401
