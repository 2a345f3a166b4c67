"""
Route publique de lecture des contenus compilés.

`GET /content/{slug_path}` renvoie le post publié et visible à ce chemin, avec
ses références de posts et d'assets injectées. Aucune authentification.
"""

from fastapi import APIRouter, Depends

from backend.api.deps import get_post_service
from backend.domain.services import PostService

router = APIRouter(tags=["content"])
service_dep = Depends(get_post_service)


@router.get("/content/{slug_path:path}")
async def get_content(slug_path: str, service: PostService = service_dep):
    """Compile et retourne le contenu public situé à `slug_path`."""
    return await service.compile(slug_path=slug_path)
