import uuid


def unique_login(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def create(client, login: str, password: str = "secret", username=None) -> str:
    r = client.post("/profiles", json={"login": login, "password": password, "username": username})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "profile-service"
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_and_get_profile(client):
    login = unique_login()
    profile_id = create(client, login, username="Alice")

    r = client.get(f"/profiles/{profile_id}")
    assert r.status_code == 200
    data = r.json()
    assert data == {"id": profile_id, "login": login, "refresh_token": "", "username": "Alice"}
    assert "password" not in data


def test_duplicate_login_is_conflict(client):
    login = unique_login()
    create(client, login)
    r = client.post("/profiles", json={"login": login, "password": "other"})
    assert r.status_code == 409


def test_login_flow(client):
    login = unique_login()
    profile_id = create(client, login, password="pw")

    r = client.post("/profiles/login", json={"login": login, "password": "pw"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["id"] == profile_id

    r2 = client.get(f"/profiles/{profile_id}")
    assert r2.json()["refresh_token"] == body["refresh_token"]


def test_login_rejects_bad_credentials(client):
    login = unique_login()
    create(client, login, password="pw")

    assert client.post("/profiles/login", json={"login": login, "password": "nope"}).status_code == 401
    assert client.post("/profiles/login", json={"login": unique_login(), "password": "pw"}).status_code == 401


def test_empty_login_is_validation_error(client):
    r = client.post("/profiles", json={"login": "", "password": "pw"})
    assert r.status_code == 422


def test_update_profile(client):
    profile_id = create(client, unique_login())
    new_login = unique_login("renamed")

    r = client.put(
        f"/profiles/{profile_id}",
        json={"login": new_login, "password": "pw2", "refresh_token": "r1"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Profile updated"

    data = client.get(f"/profiles/{profile_id}").json()
    assert data["login"] == new_login
    assert data["refresh_token"] == "r1"
    assert client.post("/profiles/login", json={"login": new_login, "password": "pw2"}).status_code == 200


def test_refresh_token_and_delete_lifecycle(client):
    profile_id = create(client, unique_login())

    r = client.put(f"/profiles/{profile_id}/refresh-token", json={"refresh_token": "tok-123"})
    assert r.status_code == 200
    assert r.json() == {"id": profile_id, "refresh_token": "tok-123"}
    assert client.get(f"/profiles/{profile_id}").json()["refresh_token"] == "tok-123"

    r_del = client.delete(f"/profiles/{profile_id}")
    assert r_del.status_code == 200
    assert r_del.json() == {"ok": True, "message": "Profile deleted"}
    assert client.get(f"/profiles/{profile_id}").status_code == 404


def test_missing_profile_is_not_found(client):
    missing = str(uuid.uuid4())
    assert client.get(f"/profiles/{missing}").status_code == 404
    assert client.delete(f"/profiles/{missing}").status_code == 404
    assert client.put(f"/profiles/{missing}/refresh-token", json={"refresh_token": "t"}).status_code == 404
    r = client.put(f"/profiles/{missing}", json={"login": unique_login(), "password": "pw"})
    assert r.status_code == 404


def test_non_uuid_id_is_not_found(client):
    assert client.get("/profiles/U1").status_code == 404
    assert client.delete("/profiles/U1").status_code == 404
    assert client.put("/profiles/U1/refresh-token", json={"refresh_token": "t"}).status_code == 404
