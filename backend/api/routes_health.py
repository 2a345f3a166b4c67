"""
Endpoint de santé pour vérifier la disponibilité de l'API et du backend.

Expose `/health` pour signaler l'état général de l'application et de la base.
"""


from fastapi import APIRouter

from backend.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et de la base de données."""
    database_ok = container.check_database()
    return {
        "status": "ok" if database_ok else "degraded",
        "storage": getattr(container, "storage_backend", "unknown"),
        "database": database_ok,
    }
