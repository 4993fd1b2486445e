"""Lookups shared by the routers (services on app.state, current user)."""
from __future__ import annotations

import asyncio

from fastapi import HTTPException, Request

from scholarmind.domain.errors import (
    DataStoreError,
    DuplicateError,
    NotFoundError,
    NotReadyError,
    PersistenceError,
    ValidationError,
)
from scholarmind.services.auth_service import AuthService, Identity
from scholarmind.services.data_store import DataStore, StoreRegistry
from scholarmind.services.session_service import session_token

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (DuplicateError, 409),
    (NotFoundError, 404),
    (NotReadyError, 503),
)


def get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def get_registry(request: Request) -> StoreRegistry:
    registry = getattr(getattr(request.app, "state", None), "store_registry", None)
    if not registry:
        raise RuntimeError("StoreRegistry not configured")
    return registry


def require_identity(request: Request) -> Identity:
    identity = get_auth_service(request).current_identity(session_token(request))
    if identity is None:
        raise HTTPException(401, "Please sign in first.")
    return identity


async def get_store(request: Request) -> DataStore:
    """Return the loaded store of the signed-in user."""
    # session lookup hits SQL; keep it off the event loop
    identity = await asyncio.to_thread(require_identity, request)
    return await get_registry(request).get(identity)


def store_error_to_http(exc: DataStoreError) -> HTTPException:
    if isinstance(exc, PersistenceError):
        return HTTPException(500, f"Change applied but not saved: {exc.message}")
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status, exc.message)
    return HTTPException(500, exc.message)
