from __future__ import annotations

import logging

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password, verify_password
from app.models.role import Role
from app.models.user import User

logger = logging.getLogger(__name__)

ROLE_NAMES = ("ADMIN", "MANAGER", "SUPERVISOR", "FINANCIAL", "OPERATIONAL", "USER")


def ensure_roles(db: Session) -> dict[str, Role]:
    roles: dict[str, Role] = {}
    for name in ROLE_NAMES:
        role = db.query(Role).filter(Role.name == name).first()
        if not role:
            role = Role(name=name)
            db.add(role)
            db.flush()
        roles[name] = role
    return roles


def ensure_seed_data(db: Session) -> None:
    """
    Papéis sempre; usuário master só com SEED_ENABLED=true (ambiente dev).
    """
    # tabelas ainda não criadas (migração pendente)
    try:
        db.query(Role).limit(1).all()
    except (OperationalError, ProgrammingError):
        db.rollback()
        logger.warning("seed_skipped reason=schema_not_ready")
        return

    roles = ensure_roles(db)
    db.commit()
    if not settings.SEED_ENABLED:
        return

    email = settings.MASTER_EMAIL.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(
            email=email,
            hashed_password=hash_password(settings.MASTER_PASSWORD),
            full_name=settings.MASTER_NAME,
            is_active=True,
        )
        db.add(user)
        db.flush()
        logger.info("seed_master_user_created email=%s", email)
    elif not verify_password(settings.MASTER_PASSWORD, user.hashed_password):
        user.hashed_password = hash_password(settings.MASTER_PASSWORD)

    master_roles = [role.strip().upper() for role in settings.MASTER_ROLES.split(",") if role.strip()]
    existing = user.role_names
    for name in master_roles:
        if name in roles and name not in existing:
            user.roles.append(roles[name])
    db.commit()
