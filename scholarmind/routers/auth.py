from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from scholarmind.routers.deps import get_auth_service, get_registry, require_identity
from scholarmind.services.auth_service import (
    AccountExistsError,
    Identity,
    InvalidCredentialsError,
    RegistrationError,
)
from scholarmind.services.session_service import (
    clear_session_cookie,
    session_token,
    set_session_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupForm(BaseModel):
    email: str
    password: str
    display_name: str = ""


class LoginForm(BaseModel):
    email: str
    password: str


def _identity_dict(identity: Identity) -> dict:
    return {"email": identity.email, "display_name": identity.display_name}


@router.post("/signup", status_code=201)
def signup(form: SignupForm, request: Request):
    svc = get_auth_service(request)
    try:
        identity = svc.signup(form.email, form.password, form.display_name)
    except RegistrationError as exc:
        raise HTTPException(400, exc.message)
    except AccountExistsError:
        raise HTTPException(409, "An account with this e-mail already exists.")
    return _identity_dict(identity)


@router.post("/login")
def login(form: LoginForm, request: Request, response: Response):
    svc = get_auth_service(request)
    try:
        result = svc.login(form.email, form.password)
    except InvalidCredentialsError:
        raise HTTPException(401, "Invalid e-mail or password.")
    set_session_cookie(response, result.session_token)
    return _identity_dict(result.identity)


@router.post("/logout")
def logout(request: Request, response: Response):
    svc = get_auth_service(request)
    token = session_token(request)
    identity = svc.current_identity(token)
    svc.logout(token)
    if identity is not None:
        get_registry(request).discard(identity)
    clear_session_cookie(response)
    return {"ok": True}


@router.get("/me")
def me(request: Request):
    return _identity_dict(require_identity(request))
