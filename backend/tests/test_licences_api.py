from app.models.issued_licence import IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.status_history import StatusHistory
from conftest import FakeRegistry, auth_headers, days_from_today
from main import app

LICENCE_PAYLOAD = {
    "type": "flatbed",
    "main_vehicle_plate": "abc-1d23",
    "length": 2500,
    "states": ["SP", "mg"],
    "additional_plates": ["PRA2B22"],
}


def _blocking_permit(factory, owner, plate="ABC1D23", state="SP", days=200):
    licence = factory.licence(owner, states=(state,), plate="ZZZ9Z99")
    return factory.issued(licence, state, f"AET-{state}-OLD", days_from_today(days), tractor_plate=plate)


def test_draft_defaults_and_submit(client, owner):
    headers = auth_headers(owner)

    created = client.post("/api/v1/licences/drafts", json=LICENCE_PAYLOAD, headers=headers)
    assert created.status_code == 201
    draft = created.json()
    assert draft["is_draft"] is True
    assert draft["request_number"].startswith("RASC-")
    assert (draft["width"], draft["height"], draft["cargo_type"]) == (320, 495, "indivisible_cargo")
    assert draft["main_vehicle_plate"] == "ABC1D23"
    assert draft["states"] == ["SP", "MG"]

    drafts = client.get("/api/v1/licences/drafts", headers=headers).json()
    assert [item["id"] for item in drafts] == [draft["id"]]

    updated = client.patch(
        f"/api/v1/licences/drafts/{draft['id']}", json={"states": ["PR"]}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["states"] == ["PR"]

    submitted = client.post(f"/api/v1/licences/drafts/{draft['id']}/submit", headers=headers)
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["is_draft"] is False
    assert body["request_number"].startswith("AET-")
    assert body["state_statuses"] == ["PR:pending_registration"]
    assert body["state_details"][0]["status_label"] == "Pedido em Cadastramento"



def test_draft_edit_publishes_licence_update(client, factory, owner, monkeypatch):
    registry = FakeRegistry()
    monkeypatch.setattr(app.state, "connection_registry", registry)
    draft = factory.licence(owner, states=("SP",), draft=True)

    response = client.patch(
        f"/api/v1/licences/drafts/{draft.id}", json={"comments": "Ajuste de rota"}, headers=auth_headers(owner)
    )

    assert response.status_code == 200
    assert registry.types() == ["LICENSE_UPDATE"]
    data = registry.events[0]["data"]
    assert data["licenseId"] == draft.id
    assert data["license"]["comments"] == "Ajuste de rota"


def test_submit_is_blocked_by_active_permit(client, factory, owner):
    _blocking_permit(factory, owner)

    response = client.post("/api/v1/licences", json=LICENCE_PAYLOAD, headers=auth_headers(owner))

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "license_conflict"
    assert [conflict["state"] for conflict in body["conflicts"]] == ["SP"]
    assert body["conflicts"][0]["conflicting_plates"] == ["ABC1D23"]


def test_submit_inside_renewal_window(client, factory, owner):
    _blocking_permit(factory, owner, days=30)

    response = client.post("/api/v1/licences", json=LICENCE_PAYLOAD, headers=auth_headers(owner))

    assert response.status_code == 201


def test_check_existing(client, factory, owner):
    _blocking_permit(factory, owner, state="MG")

    response = client.post(
        "/api/v1/licences/check-existing",
        json={"states": ["SP", "MG"], "plates": ["ABC1D23", "XYZ9A99"]},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["has_conflicts"] is True
    assert body["conflicts"][0]["permit_number"] == "AET-MG-OLD"


def test_owner_scope(client, factory, owner, other_owner):
    licence = factory.licence(owner)

    assert client.get(f"/api/v1/licences/{licence.id}", headers=auth_headers(owner)).status_code == 200
    forbidden = client.get(f"/api/v1/licences/{licence.id}", headers=auth_headers(other_owner))
    assert forbidden.status_code == 403
    assert client.get("/api/v1/licences", headers=auth_headers(other_owner)).json() == []
    assert client.get("/api/v1/licences/9999", headers=auth_headers(owner)).status_code == 404


def test_transporter_user_sees_linked_requests(client, factory, owner, operator):
    transporter = factory.transporter(owner)
    factory.licence(operator, transporter_id=transporter.id)

    listed = client.get("/api/v1/licences", headers=auth_headers(owner)).json()

    assert len(listed) == 1


def test_renew_creates_single_state_draft(client, factory, owner):
    licence = factory.licence(owner, states=("SP", "MG"))

    response = client.post(
        f"/api/v1/licences/{licence.id}/renew", json={"state": "mg"}, headers=auth_headers(owner)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["is_draft"] is True
    assert body["states"] == ["MG"]
    assert body["comments"] == f"Renovação da licença {licence.request_number} para o estado MG"

    invalid = client.post(
        f"/api/v1/licences/{licence.id}/renew", json={"state": "PR"}, headers=auth_headers(owner)
    )
    assert invalid.status_code == 422


def test_state_status_flow_with_document(client, factory, owner, operator, monkeypatch):
    registry = FakeRegistry()
    monkeypatch.setattr(app.state, "connection_registry", registry)
    licence = factory.licence(owner, states=("SP",))
    url = f"/api/v1/admin/licences/{licence.id}/state-status"

    denied = client.patch(url, data={"state": "SP", "status": "under_review"}, headers=auth_headers(owner))
    assert denied.status_code == 403

    missing_aet = client.patch(url, data={"state": "SP", "status": "under_review"}, headers=auth_headers(operator))
    assert missing_aet.status_code == 422
    assert missing_aet.json()["error"] == "validation_error"

    approved = client.patch(
        url,
        data={
            "state": "SP",
            "status": "approved",
            "aet_number": "AET-2026-0001",
            "valid_until": days_from_today(300).isoformat(),
            "issued_at": days_from_today(-65).isoformat(),
            "comments": "Liberada pelo DER",
        },
        files={"state_file": ("licenca.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers(operator),
    )
    assert approved.status_code == 200
    body = approved.json()
    assert body["status"] == "approved"
    detail = body["state_details"][0]
    assert detail["aet_number"] == "AET-2026-0001"
    assert detail["file_url"].startswith("/uploads/licences/sem-transportador/sp/")
    assert registry.types() == ["STATUS_UPDATE", "DASHBOARD_UPDATE"]

    downloaded = client.get(detail["file_url"])
    assert downloaded.status_code == 200
    assert downloaded.content == b"%PDF-1.4"

    issued = client.get("/api/v1/licences/issued", headers=auth_headers(owner)).json()
    assert [(row["state"], row["permit_number"]) for row in issued] == [("SP", "AET-2026-0001")]

    history = client.get(
        f"/api/v1/licences/{licence.id}/status-history", params={"state": "SP"}, headers=auth_headers(owner)
    ).json()
    assert [row["new_status"] for row in history] == ["approved"]


def test_invalid_state_returns_400(client, factory, owner, operator):
    licence = factory.licence(owner, states=("SP",))

    response = client.patch(
        f"/api/v1/admin/licences/{licence.id}/state-status",
        data={"state": "RJ", "status": "registration_in_progress"},
        headers=auth_headers(operator),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_state"


def test_duplicate_aet_returns_409(client, factory, owner, operator):
    first = factory.licence(owner, states=("SP",), plate="AAA1A11")
    second = factory.licence(owner, states=("SP",), plate="BBB2B22")
    form = {"state": "SP", "status": "under_review", "aet_number": "AET-9"}

    ok = client.patch(f"/api/v1/admin/licences/{first.id}/state-status", data=form, headers=auth_headers(operator))
    dup = client.patch(f"/api/v1/admin/licences/{second.id}/state-status", data=form, headers=auth_headers(operator))

    assert ok.status_code == 200
    assert dup.status_code == 409
    assert dup.json()["request_number"] == first.request_number


def test_admin_delete_cascades(client, db, factory, owner, operator, admin):
    licence = factory.licence(owner, states=("SP",))
    client.patch(
        f"/api/v1/admin/licences/{licence.id}/state-status",
        data={
            "state": "SP",
            "status": "approved",
            "aet_number": "AET-DEL",
            "valid_until": days_from_today(300).isoformat(),
            "issued_at": days_from_today(-65).isoformat(),
        },
        headers=auth_headers(operator),
    )
    licence_id = licence.id

    assert client.delete(f"/api/v1/admin/licences/{licence_id}", headers=auth_headers(operator)).status_code == 403
    assert client.delete(f"/api/v1/admin/licences/{licence_id}", headers=auth_headers(admin)).status_code == 204

    db.expire_all()
    assert db.get(LicenceRequest, licence_id) is None
    assert db.query(IssuedLicence).filter(IssuedLicence.request_id == licence_id).count() == 0
    assert db.query(StatusHistory).filter(StatusHistory.request_id == licence_id).count() == 0


def test_owner_can_only_delete_drafts(client, factory, owner):
    draft = factory.licence(owner, draft=True)
    submitted = factory.licence(owner, plate="CCC3C33")

    assert client.delete(f"/api/v1/licences/drafts/{draft.id}", headers=auth_headers(owner)).status_code == 204
    assert client.delete(f"/api/v1/licences/drafts/{submitted.id}", headers=auth_headers(owner)).status_code == 422


def test_staff_listing_and_reconcile(client, factory, owner, operator, admin):
    factory.licence(owner, states=("SP",))
    factory.licence(owner, states=("MG",), plate="DDD4D44")

    listed = client.get("/api/v1/admin/licences", params={"state": "MG"}, headers=auth_headers(operator))
    assert listed.status_code == 200
    assert [item["states"] for item in listed.json()] == [["MG"]]
    assert client.get("/api/v1/admin/licences", headers=auth_headers(owner)).status_code == 403

    reconciled = client.post("/api/v1/admin/licences/reconcile", headers=auth_headers(admin))
    assert reconciled.status_code == 200
    assert reconciled.json() == {"licences": 0, "synced": 0, "failed": 0, "expired": 0}
