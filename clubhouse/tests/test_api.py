"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from clubhouse.api import app
from clubhouse.auth import hash_password
from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import UserRepository


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    yield db_path


@pytest.fixture
def client():
    return TestClient(app)


def _signup(client, username: str) -> tuple[str, dict[str, str]]:
    resp = client.post("/signup", json={"username": username, "password": "password1"})
    assert resp.status_code == 200
    data = resp.json()
    return data["user_id"], {"Authorization": f"Bearer {data['token']}"}


@pytest.fixture
def admin_headers(client):
    conn = get_connection()
    try:
        UserRepository().create(conn, "root", hash_password("rootpass"), role="super_admin")
    finally:
        conn.close()
    resp = client.post("/login", json={"username": "root", "password": "rootpass"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_signup_login_me(client):
    resp = client.post("/signup", json={"username": "ana", "password": "password1", "display_name": "Ana"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["role"] == "player"
    assert data["token"]

    assert client.post("/signup", json={"username": "ana", "password": "password1"}).status_code == 400
    assert client.post("/signup", json={"username": "bo", "password": "123"}).status_code == 422

    assert client.post("/login", json={"username": "ana", "password": "nope"}).status_code == 401
    resp = client.post("/login", json={"username": "ana", "password": "password1"})
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['token']}"}

    me = client.get("/me", headers=headers).json()
    assert me["user"]["username"] == "ana"
    assert me["user"]["display_name"] == "Ana"
    assert "password_hash" not in me["user"]
    assert me["permissions"] == []


def test_auth_required(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer junk"}).status_code == 401
    assert client.post("/clubs", json={"name": "No Auth FC"}).status_code == 401


def test_suspended_user_locked_out(client, admin_headers):
    user_id, headers = _signup(client, "troublemaker")
    resp = client.patch(f"/users/{user_id}", json={"status": "suspended"}, headers=admin_headers)
    assert resp.status_code == 200
    assert client.get("/me", headers=headers).status_code == 403
    assert client.post("/login", json={"username": "troublemaker", "password": "password1"}).status_code == 403


def test_club_flow_and_error_mapping(client, admin_headers):
    _, owner = _signup(client, "owner")
    _, other = _signup(client, "other")
    resp = client.post("/clubs", json={"name": "Lakeside FC", "city": "Bristol"}, headers=owner)
    assert resp.status_code == 200
    club = resp.json()
    assert club["status"] == "pending"

    assert client.post("/clubs", json={"name": "lakeside fc"}, headers=other).status_code == 409
    assert client.get("/clubs/missing").status_code == 404
    assert client.patch(f"/clubs/{club['id']}", json={"description": "x"}, headers=other).status_code == 403
    assert client.post(f"/clubs/{club['id']}/verify", headers=owner).status_code == 403

    verified = client.post(f"/clubs/{club['id']}/verify", headers=admin_headers).json()
    assert verified["verified"] is True
    assert verified["status"] == "active"

    resp = client.post(f"/clubs/{club['id']}/teams", json={"name": "First XI", "gender": "mixed"}, headers=owner)
    assert resp.status_code == 400
    team = client.post(f"/clubs/{club['id']}/teams", json={"name": "First XI"}, headers=owner).json()
    detail = client.get(f"/clubs/{club['id']}").json()
    assert detail["stats"]["teams"] == 1
    assert [t["id"] for t in client.get("/me/teams", headers=owner).json()["teams"]] == []
    assert client.get(f"/teams/{team['id']}").status_code == 200
    assert [c["id"] for c in client.get("/me/clubs", headers=owner).json()["clubs"]] == [club["id"]]


def test_rejected_mutations_are_audited(client, admin_headers):
    _, owner = _signup(client, "founder")
    nosy_id, nosy = _signup(client, "nosy")
    club = client.post("/clubs", json={"name": "Audit FC"}, headers=owner).json()

    assert client.post(f"/clubs/{club['id']}/verify", headers=nosy).status_code == 403
    assert client.post("/clubs/missing/verify", headers=admin_headers).status_code == 404
    assert client.get("/admin/analytics", headers=nosy).status_code == 403

    logs = client.get("/admin/audit-logs?action=verify&success=false", headers=admin_headers).json()["logs"]
    assert len(logs) == 2
    denied = next(log for log in logs if log["user_id"] == nosy_id)
    assert denied["resource"] == "club"
    assert denied["resource_id"] == club["id"]
    assert denied["error_message"]

    access = client.get("/admin/audit-logs?action=access&success=false", headers=admin_headers).json()["logs"]
    assert [log["user_id"] for log in access] == [nosy_id]
    assert access[0]["error_message"] == "Missing permission: view_analytics"

    security = client.get("/admin/security?range=24h", headers=admin_headers).json()
    assert security["failed_events"] == 3


def test_live_match_over_api(client, admin_headers):
    owner_id, owner = _signup(client, "coach")
    client.patch(f"/users/{owner_id}", json={"role": "club_admin"}, headers=admin_headers)
    player_id, player = _signup(client, "striker")
    club = client.post("/clubs", json={"name": "Harbour FC"}, headers=owner).json()
    home = client.post(f"/clubs/{club['id']}/teams", json={"name": "Harbour A"}, headers=owner).json()
    away = client.post(f"/clubs/{club['id']}/teams", json={"name": "Harbour B"}, headers=owner).json()
    resp = client.post(
        f"/teams/{home['id']}/members", json={"user_id": player_id, "jersey_number": 9}, headers=owner
    )
    assert resp.status_code == 200

    match = client.post(
        "/matches", json={"home_team_id": home["id"], "away_team_id": away["id"]}, headers=owner
    ).json()
    mid = match["id"]
    assert client.post(f"/matches/{mid}/start", headers=player).status_code == 403
    assert client.post(f"/matches/{mid}/halftime", headers=owner).status_code == 400
    assert client.post(f"/matches/{mid}/start", headers=owner).json()["status"] == "in_progress"

    goal = {"type": "goal", "minute": 17, "team_id": home["id"], "player_id": player_id}
    dry = client.post(f"/matches/{mid}/events/validate", json=goal, headers=owner).json()
    assert dry["is_valid"] is True
    assert "Goal type not specified" in dry["warnings"]

    resp = client.post(f"/matches/{mid}/events", json=goal, headers=owner)
    assert resp.status_code == 200
    assert resp.json()["events"][0]["type"] == "goal"

    bad = {"type": "goal", "minute": 20, "team_id": away["id"], "player_id": player_id}
    resp = client.post(f"/matches/{mid}/events", json=bad, headers=owner)
    assert resp.status_code == 400
    assert resp.json()["validation"]["errors"] == [f"Player {player_id} is not on the team roster"]

    state = client.get(f"/matches/{mid}").json()
    assert state["match"]["home_score"] == 1
    assert state["home_team_name"] == "Harbour A"

    ended = client.post(f"/matches/{mid}/end", headers=owner).json()
    assert ended["status"] == "completed"
    assert ended["winner_team_id"] == home["id"]
    assert client.get(f"/matches/{mid}/report").json()["score"] == "1 - 0"
    stats = client.get(f"/matches/{mid}/stats").json()
    assert stats["team"]["home"]["goals"] == 1
    season = client.get(f"/players/{player_id}/stats").json()
    assert (season["appearances"], season["goals"]) == (1, 1)
    assert client.get("/players/nobody/stats").status_code == 404

    inbox = client.get("/notifications", headers=player).json()
    assert inbox["unread"] >= 1
    assert client.post("/notifications/read-all", headers=player).json()["marked"] == inbox["unread"]


def test_websocket_sends_current_state(client, admin_headers):
    club = client.post("/clubs", json={"name": "Socket FC"}, headers=admin_headers).json()
    a = client.post(f"/clubs/{club['id']}/teams", json={"name": "Socket A"}, headers=admin_headers).json()
    b = client.post(f"/clubs/{club['id']}/teams", json={"name": "Socket B"}, headers=admin_headers).json()
    match = client.post(
        "/matches", json={"home_team_id": a["id"], "away_team_id": b["id"]}, headers=admin_headers
    ).json()
    with client.websocket_connect(f"/ws/matches/{match['id']}") as ws:
        state = ws.receive_json()
    assert state["type"] == "live_update"
    assert state["match"]["id"] == match["id"]
    assert state["events"] == []


def test_websocket_unknown_match(client):
    with client.websocket_connect("/ws/matches/nope") as ws:
        msg = ws.receive_json()
    assert msg["type"] == "error"


def test_admin_endpoints_need_permissions(client):
    _, player = _signup(client, "curious")
    resp = client.get("/admin/analytics", headers=player)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Missing permission: view_analytics"
    assert client.get("/admin/security", headers=player).status_code == 403


def test_admin_analytics_and_audit(client, admin_headers):
    assert client.get("/admin/analytics", headers=admin_headers).status_code == 404
    created = client.post("/admin/sample-data", headers=admin_headers).json()["created"]
    assert created["users"] == 4

    snap = client.post("/admin/analytics", json={"period": "weekly"}, headers=admin_headers).json()
    assert snap["period"] == "weekly"
    assert snap["metrics"]["payments"]["total"] == 4
    assert client.get("/admin/analytics?period=weekly", headers=admin_headers).json()["id"] == snap["id"]
    assert client.post("/admin/analytics", json={"period": "hourly"}, headers=admin_headers).status_code == 400

    client.post("/login", json={"username": "root", "password": "wrong"})
    logs = client.get("/admin/audit-logs?action=login&success=false", headers=admin_headers).json()["logs"]
    assert logs and logs[0]["username"] == "root"
    security = client.get("/admin/security?range=24h", headers=admin_headers).json()
    assert security["failed_events"] >= 1

    resp = client.post(
        "/admin/system-health",
        json={"status": "healthy", "uptime": 99.9, "response_time_ms": 120.0},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert client.get("/admin/system-health", headers=admin_headers).json()["health"]["status"] == "healthy"

    sent = client.post("/admin/broadcast", json={"title": "Hi", "body": "Welcome"}, headers=admin_headers).json()
    assert sent["sent"] >= 1
    assert len(client.get("/admin/analytics/matches-over-time?days=7", headers=admin_headers).json()["days"]) == 7

    deleted = client.delete("/admin/sample-data", headers=admin_headers).json()["deleted"]
    assert deleted["users"] == 4
