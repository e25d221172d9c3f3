import os
import sys
import tempfile
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENV", "dev")
# o master user é criado pelos próprios testes
os.environ.setdefault("SEED_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="aet-uploads-"))

import app.models  # noqa: E402,F401
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402

# bcrypt é lento e desnecessário aqui
from app.core import security  # noqa: E402

security.pwd_context.hash = lambda pw: f"hashed:{pw[:72]}"
security.pwd_context.verify = lambda plain, hashed: hashed == f"hashed:{plain[:72]}"

from app.core.seed import ensure_roles  # noqa: E402
from app.models.issued_licence import IssuedLicence  # noqa: E402
from app.models.transporter import Transporter  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.vehicle import Vehicle  # noqa: E402
from app.services.licences import requests as licence_requests  # noqa: E402
from main import app  # noqa: E402


class FakeRegistry:
    def __init__(self):
        self.events = []

    def broadcast(self, event):
        self.events.append(event)
        return 1

    def types(self):
        return [event["type"] for event in self.events]


class Factory:
    def __init__(self, db):
        self.db = db

    def user(self, email, *roles, password="secret123", is_active=True):
        available = ensure_roles(self.db)
        user = User(
            email=email,
            hashed_password=security.hash_password(password),
            full_name=email.split("@")[0].title(),
            is_active=is_active,
        )
        user.roles.extend(available[name] for name in roles)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def transporter(self, owner=None, document="12345678000190", name="Transportes Rota Sul Ltda", subsidiaries=None):
        transporter = Transporter(
            user_id=owner.id if owner else None,
            name=name,
            person_type="pj",
            document_number=document,
            city="Campinas",
            state="SP",
            subsidiaries=subsidiaries or [],
        )
        self.db.add(transporter)
        self.db.commit()
        self.db.refresh(transporter)
        return transporter

    def vehicle(self, plate, type="tractor_unit", owner=None):
        vehicle = Vehicle(user_id=owner.id if owner else None, plate=plate, type=type)
        self.db.add(vehicle)
        self.db.commit()
        self.db.refresh(vehicle)
        return vehicle

    def licence(self, owner, states=("SP",), plate="ABC1D23", draft=False, **extra):
        data = {
            "type": "roadtrain_9_axles",
            "main_vehicle_plate": plate,
            "length": 3000,
            "states": list(states),
            **extra,
        }
        return licence_requests.create_request(self.db, data, owner, draft=draft)

    def issued(self, licence, state, permit_number, valid_until, status="active", **plates):
        entry = IssuedLicence(
            request_id=licence.id,
            state=state,
            permit_number=permit_number,
            issued_at=valid_until - timedelta(days=365),
            valid_until=valid_until,
            status=status,
            **plates,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry


def auth_headers(user):
    return {"Authorization": f"Bearer {security.create_access_token({'sub': user.id})}"}


def days_from_today(days):
    return date.today() + timedelta(days=days)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def factory(db):
    return Factory(db)


@pytest.fixture()
def admin(factory):
    return factory.user("admin@example.com", "ADMIN")


@pytest.fixture()
def operator(factory):
    return factory.user("operador@example.com", "OPERATIONAL")


@pytest.fixture()
def owner(factory):
    return factory.user("cliente@example.com", "USER")


@pytest.fixture()
def other_owner(factory):
    return factory.user("outro@example.com", "USER")


@pytest.fixture()
def fake_registry():
    return FakeRegistry()
