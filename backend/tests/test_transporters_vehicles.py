from conftest import auth_headers


def test_transporter_crud(client, operator, owner):
    payload = {
        "name": "Transportes Rota Sul Ltda",
        "document_number": "12.345.678/0001-90",
        "state": "sp",
        "user_id": owner.id,
        "subsidiaries": [{"name": "Filial MG", "document_number": "12.345.678/0002-70", "state": "MG"}],
    }

    created = client.post("/api/v1/transporters", json=payload, headers=auth_headers(operator))
    assert created.status_code == 200
    body = created.json()
    assert body["document_number"] == "12345678000190"
    assert body["state"] == "SP"
    assert body["subsidiaries"][0]["document_number"] == "12345678000270"

    duplicate = client.post("/api/v1/transporters", json=payload, headers=auth_headers(operator))
    assert duplicate.status_code == 409

    invalid = client.post(
        "/api/v1/transporters", json={**payload, "document_number": "123"}, headers=auth_headers(operator)
    )
    assert invalid.status_code == 400

    # usuário do transportador só lê
    assert client.post("/api/v1/transporters", json=payload, headers=auth_headers(owner)).status_code == 403
    listed = client.get("/api/v1/transporters", headers=auth_headers(owner)).json()
    assert [item["id"] for item in listed] == [body["id"]]

    updated = client.patch(
        f"/api/v1/transporters/{body['id']}", json={"trade_name": "Rota Sul"}, headers=auth_headers(operator)
    )
    assert updated.json()["trade_name"] == "Rota Sul"


def test_vehicle_crud(client, owner, other_owner):
    headers = auth_headers(owner)

    created = client.post(
        "/api/v1/vehicles", json={"plate": "abc-1d23", "type": "tractor_unit", "axle_count": 3}, headers=headers
    )
    assert created.status_code == 200
    vehicle = created.json()
    assert vehicle["plate"] == "ABC1D23"
    assert vehicle["status"] == "active"

    duplicate = client.post("/api/v1/vehicles", json={"plate": "ABC1D23", "type": "dolly"}, headers=headers)
    assert duplicate.status_code == 409

    assert client.get(f"/api/v1/vehicles/{vehicle['id']}", headers=auth_headers(other_owner)).status_code == 404

    updated = client.patch(f"/api/v1/vehicles/{vehicle['id']}", json={"status": "maintenance"}, headers=headers)
    assert updated.json()["status"] == "maintenance"

    listed = client.get("/api/v1/vehicles", params={"plate": "1d2"}, headers=headers).json()
    assert [item["plate"] for item in listed] == ["ABC1D23"]

    assert client.delete(f"/api/v1/vehicles/{vehicle['id']}", headers=headers).status_code == 204
    assert client.get("/api/v1/vehicles", headers=headers).json() == []
