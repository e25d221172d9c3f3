from app.db.base import Base
from app.models.boleto import Boleto
from app.models.issued_licence import IssuedLicence
from app.models.licence_request import LicenceRequest
from app.models.role import Role
from app.models.status_history import StatusHistory
from app.models.transporter import Transporter
from app.models.user import User, user_roles
from app.models.vehicle import Vehicle

__all__ = [
    "Base",
    "Boleto",
    "IssuedLicence",
    "LicenceRequest",
    "Role",
    "StatusHistory",
    "Transporter",
    "User",
    "Vehicle",
    "user_roles",
]
