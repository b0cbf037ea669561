from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from learning_portal.models.db import get_db
from learning_portal.models.schemas import CurrentUser, LoginIn, RegistrationIn, TokenOut
from learning_portal.services import identity

router = APIRouter(prefix="/auth", tags=["auth"])

_bearer = HTTPBearer(auto_error=False)


def _token(creds: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return creds.credentials if creds else None


def require_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
) -> CurrentUser:
    user = identity.current_user(db, _token(creds))
    if user is None:
        raise HTTPException(status_code=401, detail="not signed in")
    return user


@router.post("/register", status_code=201)
def register(payload: RegistrationIn, db: Session = Depends(get_db)):
    try:
        guardian = identity.sign_up(db, payload)
    except identity.EmailAlreadyRegistered:
        raise HTTPException(status_code=409, detail="email already registered")
    return {"ok": True, "guardian_id": guardian.id, "status": guardian.status}


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    try:
        session = identity.sign_in(db, payload.email, payload.password)
    except identity.InvalidCredentials:
        raise HTTPException(status_code=401, detail="invalid email or password")
    return {"token": session.token, "guardian_id": session.guardian_id}


@router.post("/logout")
def logout(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
):
    return {"ok": identity.sign_out(db, _token(creds) or "")}


@router.get("/me", response_model=CurrentUser)
def me(user: CurrentUser = Depends(require_user)):
    return user
