from datetime import date

from app.services.licences.transitions import transition
from conftest import auth_headers, days_from_today


def test_stats_for_owner(client, db, factory, owner, operator, other_owner):
    factory.vehicle("CAV1A11", owner=owner)
    factory.licence(owner, draft=True)
    approved = factory.licence(owner, states=("SP",), plate="AAA1A11")
    factory.licence(owner, states=("SP", "MG"), plate="BBB2B22")
    factory.licence(other_owner, states=("PR",), plate="CCC3C33")
    transition(
        db,
        approved.id,
        "SP",
        "approved",
        actor_id=operator.id,
        aet_number="AET-DASH",
        valid_until=days_from_today(10),
        issued_at=date.today(),
    )

    response = client.get("/api/v1/dashboard/stats", headers=auth_headers(owner))

    assert response.status_code == 200
    stats = response.json()
    assert stats["issued_licences"] == 1
    assert stats["pending_licences"] == 1
    assert stats["drafts"] == 1
    assert stats["registered_vehicles"] == 1
    assert stats["expiring_soon"] == 1
    assert stats["state_distribution"] == {"SP": 2, "MG": 1}
    assert stats["status_distribution"] == {"approved": 1, "pending_registration": 2}


def test_staff_sees_everything(client, factory, owner, other_owner, admin):
    factory.licence(owner, states=("SP",), plate="AAA1A11")
    factory.licence(other_owner, states=("PR",), plate="CCC3C33")

    stats = client.get("/api/v1/dashboard/stats", headers=auth_headers(admin)).json()

    assert stats["pending_licences"] == 2
