def test_ping_is_public(client):
    assert client.get("/ping").json() == {"status": "ok"}
    assert client.get("/ping/secure").status_code == 401


def test_login_returns_token_and_user(client):
    response = client.post("/api/auth/login", json={"login": "admin", "password": "admin"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"] == {"id": "1", "name": "Admin", "role": "admin", "active": True}


def test_check_echoes_identity(client, admin_headers):
    response = client.get("/api/auth/check", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"loggedIn": True, "user": {"id": "1", "name": "Admin", "role": "admin"}}


def test_check_rejects_missing_or_bad_token(client):
    assert client.get("/api/auth/check").status_code == 401
    response = client.get("/api/auth/check", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid token"}
    assert response.headers["www-authenticate"] == "Bearer"


def test_logout_is_stateless(client, admin_headers):
    assert client.post("/api/auth/logout").json() == {"logout": True}
    assert client.get("/api/auth/check", headers=admin_headers).status_code == 200


def test_login_error_statuses(client):
    assert client.post("/api/auth/login", json={}).status_code == 400
    assert client.post("/api/auth/login", json={"login": "admin"}).status_code == 400
    response = client.post("/api/auth/login", json={"login": "ghost", "password": "x"})
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid credentials"}


def test_lockout_then_expiry(client, app_clock):
    for _ in range(4):
        assert client.post("/api/auth/login", json={"login": "admin", "password": "bad"}).status_code == 401

    locked = client.post("/api/auth/login", json={"login": "admin", "password": "bad"})
    assert locked.status_code == 429
    assert locked.headers["retry-after"] == "900"

    blocked = client.post("/api/auth/login", json={"login": "admin", "password": "admin"})
    assert blocked.status_code == 429
    assert "15 minute" in blocked.json()["detail"]

    app_clock.advance(minutes=15)
    assert client.post("/api/auth/login", json={"login": "admin", "password": "admin"}).status_code == 200


def test_inactive_user_gets_403(client, admin_headers):
    created = client.post(
        "/api/users",
        json={"name": "Bruno", "login": "bruno", "password": "pw", "role": "analyst"},
        headers=admin_headers,
    ).json()
    client.put(f"/api/users/{created['id']}/active", json={"active": False}, headers=admin_headers)

    response = client.post("/api/auth/login", json={"login": "bruno", "password": "pw"})

    assert response.status_code == 403


def test_audit_and_locks_are_admin_only(client, admin_headers, analyst_headers):
    for _ in range(5):
        client.post("/api/auth/login", json={"login": "ghost", "password": "bad"}, headers={"User-Agent": "curl/8.5"})

    assert client.get("/api/auth/audit", headers=analyst_headers).status_code == 403
    assert client.get("/api/auth/locks", headers=analyst_headers).status_code == 403

    events = client.get("/api/auth/audit", params={"limit": 2}, headers=admin_headers).json()
    assert len(events) == 2
    assert events[0]["outcome"] == "locked_by_attempts"
    assert events[0]["loginAttempted"] == "ghost"
    assert events[0]["userAgent"] == "curl/8.5"

    locks = client.get("/api/auth/locks", headers=admin_headers).json()
    assert [lock["login"] for lock in locks] == ["ghost"]
    assert locks[0]["failCount"] == 5
    assert locks[0]["remainingMinutes"] == 15


def test_admin_unlocks_login(client, admin_headers):
    for _ in range(5):
        client.post("/api/auth/login", json={"login": "admin", "password": "bad"})
    assert client.post("/api/auth/login", json={"login": "admin", "password": "admin"}).status_code == 429

    response = client.post("/api/auth/locks/Admin/unlock", headers=admin_headers)

    assert response.json() == {"login": "admin", "unlocked": True}
    assert client.get("/api/auth/locks", headers=admin_headers).json() == []
    assert client.post("/api/auth/login", json={"login": "admin", "password": "admin"}).status_code == 200
    latest = client.get("/api/auth/audit", params={"limit": 2}, headers=admin_headers).json()
    assert [event["outcome"] for event in latest] == ["success", "manual_unlock"]


def test_audit_limit_is_clamped_not_rejected(client, admin_headers):
    oversized = client.get("/api/auth/audit", params={"limit": 5000}, headers=admin_headers)
    assert oversized.status_code == 200
    assert [event["outcome"] for event in oversized.json()] == ["success"]

    undersized = client.get("/api/auth/audit", params={"limit": 0}, headers=admin_headers)
    assert undersized.status_code == 200
    assert len(undersized.json()) == 1


def test_audit_limit_must_be_a_number(client, admin_headers):
    assert client.get("/api/auth/audit", params={"limit": "many"}, headers=admin_headers).status_code == 400


def test_session_expires_by_the_app_clock(client, admin_headers, app_clock):
    app_clock.advance(hours=7, minutes=59)
    assert client.get("/api/auth/check", headers=admin_headers).status_code == 200

    app_clock.advance(minutes=2)
    response = client.get("/api/auth/check", headers=admin_headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Token expired"}
