"""Session cookie helpers."""
from __future__ import annotations

from fastapi import Request, Response

from scholarmind.core.config import get_settings

SESSION_COOKIE_NAME = "session"


def session_token(request: Request) -> str | None:
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    secure_cookie = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=secure_cookie,
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
