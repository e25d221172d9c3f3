from __future__ import annotations

import os
import uuid
from datetime import date, timedelta

import httpx
import pytest


pytestmark = pytest.mark.e2e


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        pytest.fail(f"Variável de ambiente obrigatória ausente: {name}")
    return value


def _api_base_url() -> str:
    return (os.getenv("AET_E2E_API_BASE_URL") or "http://127.0.0.1:8020").rstrip("/")


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _random_plate() -> str:
    suffix = uuid.uuid4().hex[:4].upper()
    return f"E2E{suffix}"[:7]


@pytest.fixture(scope="session")
def credentials() -> tuple[str, str]:
    return _require_env("AET_EMAIL"), _require_env("AET_PASSWORD")


@pytest.fixture(scope="session")
def client() -> httpx.Client:
    with httpx.Client(base_url=_api_base_url(), timeout=30.0) as http:
        yield http


@pytest.fixture(scope="session")
def access_token(client: httpx.Client, credentials: tuple[str, str]) -> str:
    email, password = credentials
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    if response.status_code != 200:
        pytest.fail(
            "Falha no login E2E em /api/v1/auth/login "
            f"(status={response.status_code}) para AET_EMAIL='{email}'. "
            "Defina AET_EMAIL/AET_PASSWORD com um usuario real do banco "
            "(com role ADMIN para liberar e excluir licenças). "
            f"Resposta: {response.text}"
        )
    token = response.json().get("access_token")
    assert token, response.text
    return token


def test_e2e_login_and_me(client: httpx.Client, access_token: str) -> None:
    response = client.get("/api/v1/auth/me", headers=_auth_headers(access_token))
    assert response.status_code == 200, response.text
    data = response.json()
    assert data.get("email")
    assert "ADMIN" in data["roles"]


def test_e2e_licence_lifecycle(client: httpx.Client, access_token: str) -> None:
    headers = _auth_headers(access_token)
    plate = _random_plate()
    payload = {
        "type": "roadtrain_9_axles",
        "main_vehicle_plate": plate,
        "length": 3000,
        "states": ["GO", "MG"],
    }

    draft = client.post("/api/v1/licences/drafts", json=payload, headers=headers)
    assert draft.status_code == 201, draft.text
    licence_id = draft.json()["id"]

    submitted = client.post(f"/api/v1/licences/drafts/{licence_id}/submit", headers=headers)
    assert submitted.status_code == 200, submitted.text
    request_number = submitted.json()["request_number"]
    assert request_number.startswith("AET-")

    approved = client.patch(
        f"/api/v1/admin/licences/{licence_id}/state-status",
        data={
            "state": "GO",
            "status": "approved",
            "aet_number": f"E2E-{uuid.uuid4().hex[:10].upper()}",
            "issued_at": date.today().isoformat(),
            "valid_until": (date.today() + timedelta(days=365)).isoformat(),
            "comments": "Liberada pelo teste e2e",
        },
        headers=headers,
    )
    assert approved.status_code == 200, approved.text

    issued = client.get("/api/v1/licences/issued", headers=headers)
    assert issued.status_code == 200, issued.text
    assert any(item["request_id"] == licence_id and item["state"] == "GO" for item in issued.json())

    check = client.post(
        "/api/v1/licences/check-existing",
        json={"states": ["GO", "MG"], "plates": [plate]},
        headers=headers,
    )
    assert check.status_code == 200, check.text
    assert [conflict["state"] for conflict in check.json()["conflicts"]] == ["GO"]

    blocked = client.post("/api/v1/licences", json={**payload, "states": ["GO"]}, headers=headers)
    assert blocked.status_code == 409, blocked.text
    assert blocked.json()["error"] == "license_conflict"

    deleted = client.delete(f"/api/v1/admin/licences/{licence_id}", headers=headers)
    assert deleted.status_code == 204, deleted.text
