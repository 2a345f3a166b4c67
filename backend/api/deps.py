"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Centraliser l'accès aux services nécessaires aux endpoints.
- Offrir un point d'ancrage pour substituer le service en test
  (`app.dependency_overrides[get_post_service]`), sans modifier les routes.
"""

from backend.core.container import container
from backend.domain.services import PostService


def get_post_service() -> PostService:
    """Service des posts du conteneur applicatif."""
    return container.post_service
