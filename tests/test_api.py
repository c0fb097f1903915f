import json

import pytest
from fastapi.testclient import TestClient

from skillar.main import create_app
from skillar.schemas import Role

from fakes import fail, ok

STEPS = [
    {"title": "Identify the neutral wire", "instruction": "Locate the blue wire"},
    {"title": "Strip the insulation", "instruction": "Remove 1cm with the stripper"},
]


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as c:
        yield c


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def learner(client) -> dict:
    resp = client.post(
        "/api/v1/auth/signup",
        json={"email": "asha@example.com", "password": "secret1", "display_name": "Asha Devi"},
    )
    assert resp.status_code == 201
    return _bearer(resp.json()["token"])


@pytest.fixture
def admin(services) -> dict:
    _, token = services.auth.sign_up("admin@example.com", "secret1", "Meera Admin", role=Role.ADMIN)
    return _bearer(token)


def _create_skill(client, headers, steps=STEPS, **fields):
    form = {"title": "Basic Electrical Wiring", "description": "Wire a switch", "category": "Electrical"}
    form.update(fields)
    form["steps"] = json.dumps(steps)
    return client.post(
        "/api/v1/skills",
        data=form,
        files={"cover": ("cover.png", b"\x89PNG cover", "image/png")},
        headers=headers,
    )


@pytest.fixture
def skill_id(client, admin) -> str:
    resp = _create_skill(client, admin)
    assert resp.status_code == 201
    return resp.json()["id"]


# ── Auth ───────────────────────────────────────────────────────────────────

def test_root_and_health(client) -> None:
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["name"] == "SkillAR Bharat API"


def test_signup_signin_me_signout(client, learner) -> None:
    me = client.get("/api/v1/auth/me", headers=learner).json()
    assert me["email"] == "asha@example.com"
    assert me["profile"]["role"] == "user"
    assert me["is_admin"] is False

    resp = client.post("/api/v1/auth/signin", json={"email": "asha@example.com", "password": "secret1"})
    assert resp.status_code == 200
    fresh = _bearer(resp.json()["token"])

    assert client.post("/api/v1/auth/signout", headers=fresh).status_code == 204
    assert client.get("/api/v1/auth/me", headers=fresh).status_code == 401
    assert client.get("/api/v1/auth/me", headers=learner).status_code == 200


def test_auth_errors(client, learner) -> None:
    resp = client.post("/api/v1/auth/signin", json={"email": "asha@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid email or password.", "kind": "InvalidCredential"}

    resp = client.post(
        "/api/v1/auth/signup",
        json={"email": "asha@example.com", "password": "secret1", "display_name": "Asha"},
    )
    assert resp.status_code == 409
    assert resp.json()["kind"] == "EmailAlreadyInUse"

    resp = client.post(
        "/api/v1/auth/signup",
        json={"email": "bad", "password": "123", "display_name": "X"},
    )
    assert resp.status_code == 422
    assert "Invalid email address" in resp.json()["detail"]

    assert client.get("/api/v1/skills").status_code == 401


# ── Skills & enrollment ────────────────────────────────────────────────────

def test_admin_creates_skill_with_cover(client, admin, learner, skill_id) -> None:
    skill = client.get(f"/api/v1/skills/{skill_id}", headers=learner).json()
    assert [s["order"] for s in skill["steps"]] == [1, 2]
    assert skill["difficulty"] == "Beginner"

    cover_path = skill["image_url"].split("http://testserver", 1)[1]
    resp = client.get(cover_path)
    assert resp.status_code == 200
    assert resp.content == b"\x89PNG cover"

    assert client.get("/blobs/skills/missing.png").status_code == 404


def test_skill_authoring_rules(client, admin, learner) -> None:
    assert _create_skill(client, learner).status_code == 403

    resp = _create_skill(client, admin, title="")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Title is required"

    resp = _create_skill(client, admin, steps=[])
    assert resp.json()["detail"] == "A skill needs at least one step"

    resp = client.post("/api/v1/skills", data={"title": "T", "description": "D", "steps": json.dumps(STEPS)}, headers=admin)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Please select a cover image"

    assert client.get("/api/v1/skills", headers=admin).json() == []


def test_enroll_is_idempotent(client, learner, skill_id) -> None:
    for _ in range(2):
        resp = client.post(f"/api/v1/skills/{skill_id}/enroll", headers=learner)
        assert resp.status_code == 200
        assert resp.json() == {"enrolled_skills": [skill_id]}

    assert client.post("/api/v1/skills/nope/enroll", headers=learner).status_code == 404
    assert client.get("/api/v1/skills/nope", headers=learner).status_code == 404

    dash = client.get("/api/v1/dashboard", headers=learner).json()
    assert dash["greeting_name"] == "Asha"
    assert [s["id"] for s in dash["enrolled"]] == [skill_id]
    assert dash["available"] == []


# ── Training ───────────────────────────────────────────────────────────────

def test_full_training_flow(client, learner, oracle, skill_id) -> None:
    oracle.queue(fail(), ok(90), ok(71))

    resp = client.post("/api/v1/training", json={"skill_id": skill_id}, headers=learner)
    assert resp.status_code == 201
    handle = resp.json()["handle"]
    assert resp.json()["view"]["phase"] == "step_active"
    base = f"/api/v1/training/{handle}"

    frame = {"frame": ("step1.jpg", b"jpeg-1", "image/jpeg")}
    view = client.post(f"{base}/verify", files=frame, headers=learner).json()["view"]
    assert view["phase"] == "step_active"
    assert view["feedback_message"].startswith("Incorrect technique")

    view = client.post(f"{base}/verify", headers=learner).json()["view"]
    assert view["phase"] == "step_result"
    assert view["feedback_message"] == "Excellent! Step verified. Accuracy: 90%"
    assert client.post(f"{base}/verify", headers=learner).status_code == 409

    view = client.post(f"{base}/advance", headers=learner).json()["view"]
    assert (view["phase"], view["step_index"]) == ("step_active", 1)

    assert client.post(f"{base}/frame", files={"frame": ("s2.jpg", b"jpeg-2", "image/jpeg")}, headers=learner).status_code == 204
    client.post(f"{base}/verify", headers=learner)
    view = client.post(f"{base}/advance", headers=learner).json()["view"]
    assert view["phase"] == "complete"
    assert view["accuracy_score"] == 81
    assert view["result_feedback"] == "Great job! You've mastered this skill."
    assert view["saved"] is True

    assert [frame for frame, _ in oracle.calls] == [b"jpeg-1", b"jpeg-1", b"jpeg-2"]

    sessions = client.get("/api/v1/sessions", headers=learner).json()
    assert [(s["skill_id"], s["accuracy_score"]) for s in sessions] == [(skill_id, 81)]
    assert len(client.get("/api/v1/sessions/recent?limit=1", headers=learner).json()) == 1

    assert client.delete(base, headers=learner).status_code == 204
    assert client.get(base, headers=learner).status_code == 404


def test_missing_skill_returns_error_view(client, learner) -> None:
    resp = client.post("/api/v1/training", json={"skill_id": "nope"}, headers=learner)
    assert resp.status_code == 201
    body = resp.json()
    assert body["handle"] is None
    assert body["view"]["phase"] == "error"
    assert body["view"]["error"] == "Skill not found"


def test_camera_denied_blocks_verify(client, learner, oracle, skill_id) -> None:
    resp = client.post(
        "/api/v1/training", json={"skill_id": skill_id, "camera_permission": False}, headers=learner
    )
    body = resp.json()
    assert body["view"]["camera_error"] == "Camera access denied. Please enable camera permissions."
    assert body["view"]["can_verify"] is False

    resp = client.post(f"/api/v1/training/{body['handle']}/verify", headers=learner)
    assert resp.status_code == 409
    assert oracle.calls == []


def test_abandoned_session_is_not_recorded(client, learner, oracle, admin, skill_id) -> None:
    oracle.queue(ok(95))
    handle = client.post("/api/v1/training", json={"skill_id": skill_id}, headers=learner).json()["handle"]
    base = f"/api/v1/training/{handle}"
    client.post(f"{base}/verify", headers=learner)
    client.post(f"{base}/advance", headers=learner)

    assert client.get(base, headers=admin).status_code == 404
    assert client.delete(base, headers=admin).status_code == 404

    assert client.delete(base, headers=learner).status_code == 204
    assert client.delete(base, headers=learner).status_code == 404
    assert client.get("/api/v1/sessions", headers=learner).json() == []


def test_retry_after_completion(client, learner, oracle, admin) -> None:
    skill_id = _create_skill(client, admin, steps=STEPS[:1]).json()["id"]
    oracle.queue(ok(80), ok(99))
    base = "/api/v1/training/" + client.post(
        "/api/v1/training", json={"skill_id": skill_id}, headers=learner
    ).json()["handle"]

    client.post(f"{base}/verify", headers=learner)
    assert client.post(f"{base}/advance", headers=learner).json()["view"]["accuracy_score"] == 80
    assert client.post(f"{base}/advance", headers=learner).status_code == 409

    view = client.post(f"{base}/retry", headers=learner).json()["view"]
    assert (view["phase"], view["step_index"], view["scores"]) == ("step_active", 0, [])

    client.post(f"{base}/verify", headers=learner)
    client.post(f"{base}/advance", headers=learner)
    scores = sorted(s["accuracy_score"] for s in client.get("/api/v1/sessions", headers=learner).json())
    assert scores == [80, 99]
