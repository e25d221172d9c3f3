from conftest import auth_headers


def test_login_and_me(client, factory):
    factory.user("gestor@example.com", "MANAGER", password="gestor123")

    login_response = client.post(
        "/api/v1/auth/login",
        json={"email": "gestor@example.com", "password": "gestor123"},
    )
    assert login_response.status_code == 200
    data = login_response.json()
    assert data["token_type"] == "bearer"

    me_response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me_response.status_code == 200
    me = me_response.json()
    assert me["email"] == "gestor@example.com"
    assert me["roles"] == ["MANAGER"]
    assert me["is_staff"] is True


def test_login_rejects_bad_credentials_and_inactive_users(client, factory):
    factory.user("inativo@example.com", "USER", password="senha123", is_active=False)

    wrong = client.post("/api/v1/auth/login", json={"email": "inativo@example.com", "password": "x"})
    inactive = client.post("/api/v1/auth/login", json={"email": "inativo@example.com", "password": "senha123"})

    assert wrong.status_code == 401
    assert inactive.status_code == 403


def test_me_requires_valid_token(client, owner):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer invalid"}).status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth_headers(owner)).json()["is_staff"] is False
