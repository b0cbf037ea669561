from __future__ import annotations

"""
learning_portal/services/identity.py

Guardian accounts and bearer-token sessions:
- sign_up: create the guardian profile (and any children from the wizard)
- sign_in / sign_out: issue and revoke opaque tokens
- current_user: resolve a token to {id, email}
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from learning_portal.models.entities import AuthSession, Guardian
from learning_portal.models.schemas import CurrentUser, RegistrationIn
from learning_portal.services.data_access import SqlPortalDataSource

log = logging.getLogger(__name__)


class IdentityError(Exception):
    pass


class EmailAlreadyRegistered(IdentityError):
    pass


class InvalidCredentials(IdentityError):
    pass


def _normalise_email(email: str) -> str:
    return (email or "").strip().lower()


def sign_up(db: Session, registration: RegistrationIn) -> Guardian:
    email = _normalise_email(registration.email)
    if db.scalar(select(Guardian).where(Guardian.email == email)):
        raise EmailAlreadyRegistered(email)

    guardian = Guardian(
        name=registration.full_name,
        email=email,
        password_hash=generate_password_hash(registration.password),
        role=registration.role,
        location=registration.location,
        languages=list(registration.languages),
        quran_level=registration.quran_level,
        status="pending",
    )
    db.add(guardian)
    db.commit()
    db.refresh(guardian)

    source = SqlPortalDataSource(db)
    for child in registration.children:
        source.add_student(guardian.id, child)

    log.info("[auth] registered guardian %s with %d child(ren)", guardian.id, len(registration.children))
    return guardian


def sign_in(db: Session, email: str, password: str) -> AuthSession:
    guardian = db.scalar(select(Guardian).where(Guardian.email == _normalise_email(email)))
    if guardian is None or not check_password_hash(guardian.password_hash, password or ""):
        log.info("[auth] failed sign-in for %s", _normalise_email(email))
        raise InvalidCredentials()

    session = AuthSession(token=secrets.token_urlsafe(32), guardian_id=guardian.id)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def sign_out(db: Session, token: str) -> bool:
    session = db.get(AuthSession, token)
    if session is None or session.revoked_at is not None:
        return False
    session.revoked_at = datetime.now(timezone.utc)
    db.commit()
    return True


def current_user(db: Session, token: Optional[str]) -> Optional[CurrentUser]:
    if not token:
        return None
    session = db.get(AuthSession, token)
    if session is None or session.revoked_at is not None:
        return None
    guardian = db.get(Guardian, session.guardian_id)
    if guardian is None:
        return None
    return CurrentUser(id=guardian.id, email=guardian.email)
