"""
FastAPI routers grouped by domain (auth, subjects, goals).

Each module exposes an APIRouter included by ``scholarmind.app.create_app``.
Routers only translate HTTP to store/auth calls; they keep no state.
"""
