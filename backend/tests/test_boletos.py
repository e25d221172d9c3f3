from datetime import date
from decimal import Decimal

from app.models.boleto import Boleto
from conftest import auth_headers, days_from_today


def _payload(transporter_id, **overrides):
    payload = {
        "transporter_id": transporter_id,
        "boleto_number": "34191.79001 01043.510047 91020.150008 1 96610000012345",
        "amount": "1234.50",
        "issue_date": days_from_today(-5).isoformat(),
        "due_date": days_from_today(25).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_financial_creates_and_owner_lists(client, factory, owner, other_owner):
    financial = factory.user("financeiro@example.com", "FINANCIAL")
    transporter = factory.transporter(owner)
    factory.transporter(other_owner, document="98765432000110", name="Outra Transportadora")

    created = client.post("/api/v1/boletos", json=_payload(transporter.id), headers=auth_headers(financial))
    assert created.status_code == 201
    body = created.json()
    assert body["cpf_cnpj"] == "12345678000190"
    assert body["transporter_name"] == "Transportes Rota Sul Ltda"
    assert body["status"] == "aguardando_pagamento"

    assert client.post("/api/v1/boletos", json=_payload(transporter.id), headers=auth_headers(owner)).status_code == 403

    own = client.get("/api/v1/boletos", headers=auth_headers(owner)).json()
    assert [item["id"] for item in own] == [body["id"]]
    assert client.get("/api/v1/boletos", headers=auth_headers(other_owner)).json() == []
    assert client.get(f"/api/v1/boletos/{body['id']}", headers=auth_headers(other_owner)).status_code == 403

    paid = client.patch(f"/api/v1/boletos/{body['id']}", json={"status": "pago"}, headers=auth_headers(financial))
    assert paid.json()["status"] == "pago"


def test_due_date_must_follow_issue_date(client, factory, owner):
    financial = factory.user("financeiro@example.com", "FINANCIAL")
    transporter = factory.transporter(owner)

    response = client.post(
        "/api/v1/boletos",
        json=_payload(
            transporter.id,
            issue_date=days_from_today(10).isoformat(),
            due_date=days_from_today(1).isoformat(),
        ),
        headers=auth_headers(financial),
    )

    assert response.status_code == 422


def test_overdue_boletos_are_flagged(db, factory, owner):
    from app.services.boletos import mark_overdue

    transporter = factory.transporter(owner)
    db.add(
        Boleto(
            transporter_id=transporter.id,
            transporter_name=transporter.name,
            cpf_cnpj=transporter.document_number,
            boleto_number="123",
            amount=Decimal("10.00"),
            issue_date=date(2026, 9, 1),
            due_date=date(2026, 9, 30),
        )
    )
    db.commit()

    assert mark_overdue(db, today=date(2026, 10, 1)) == 1
    assert db.query(Boleto).one().status == "vencido"
