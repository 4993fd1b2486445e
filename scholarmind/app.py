"""FastAPI application wiring: storage, data store registry, auth, routers."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from scholarmind.core.config import Settings, get_settings
from scholarmind.core.logging_setup import configure_logging
from scholarmind.db.session import create_all
from scholarmind.repositories import KeyValueStorage
from scholarmind.repositories.json_storage import JsonFileStorage
from scholarmind.repositories.memory_storage import MemoryStorage
from scholarmind.repositories.sql_storage import SQLStorage
from scholarmind.routers import auth as auth_router
from scholarmind.routers import goals as goals_router
from scholarmind.routers import subjects as subjects_router
from scholarmind.routers.deps import get_auth_service, get_registry
from scholarmind.services.auth_service import AuthService
from scholarmind.services.data_store import StoreRegistry
from scholarmind.services.session_service import session_token

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> KeyValueStorage:
    if settings.storage_backend == "json":
        return JsonFileStorage(settings.storage_path)
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return SQLStorage()


def create_app(settings: Optional[Settings] = None, storage: Optional[KeyValueStorage] = None) -> FastAPI:
    """Factory for uvicorn (``--factory``) and tests."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # accounts/sessions always live in SQL, whatever the goal storage is
        create_all()
        app.state.auth_service = AuthService()
        app.state.store_registry = StoreRegistry(
            storage or build_storage(settings),
            namespace_by_user=settings.namespace_by_user,
        )
        logger.info("ScholarMind started (env=%s, storage=%s)", settings.app_env, settings.storage_backend)
        yield

    app = FastAPI(title="ScholarMind API", lifespan=lifespan)
    app.include_router(auth_router.router)
    app.include_router(subjects_router.router)
    app.include_router(goals_router.router)

    @app.get("/health")
    def health(request: Request):
        identity = get_auth_service(request).current_identity(session_token(request))
        store = get_registry(request).peek(identity) if identity else None
        return {
            "status": "ok",
            "store": store.state.value if store else None,
            "load_error": store.load_error.message if store and store.load_error else None,
        }

    return app
