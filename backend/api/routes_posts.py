"""
Routes d'administration des posts.

Ce module regroupe les endpoints `/posts`: liste, création, copie, édition du
contenu, publication, versions (liste, restauration, suppression) et
prévisualisation compilée. Toutes les routes exigent un auteur authentifié.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from backend.api.deps import get_post_service
from backend.api.routes_auth import get_current_user
from backend.api.schemas import (
    CompileRequest,
    PostCopyRequest,
    PostCreateRequest,
    PostUpdateRequest,
    PublishRequest,
)
from backend.domain.entities import Author
from backend.domain.services import PostService

router = APIRouter(prefix="/posts", tags=["posts"])
current_user_dep = Depends(get_current_user)
service_dep = Depends(get_post_service)


def _csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


@router.get("")
def list_posts(
    id: str | None = None,
    type: str | None = None,
    content_type_id: str | None = None,
    search: str | None = None,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Liste les posts (versions exclues); filtres CSV sur id, type et content_type_id."""
    return service.list_posts(
        ids=_csv(id), types=_csv(type), content_type_ids=_csv(content_type_id), search=search
    )


@router.post("")
def create_post(
    payload: PostCreateRequest,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Crée un post; son chemin est dérivé de celui du parent."""
    return service.create_post(
        name=payload.name,
        slug=payload.slug,
        author=user,
        type=payload.type,
        parent_id=payload.parent_id,
        content_type_id=payload.content_type_id,
    )


@router.delete("")
def delete_posts(
    ids: list[int] = Body(...),
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Supprime des posts (et leurs versions)."""
    return {"deleted": service.delete_posts(ids)}


@router.get("/one")
def get_post_by_slug_path(
    slug_path: str = Query(...),
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Retourne un post par chemin (brouillons compris)."""
    return service.get_post_by_slug_path(slug_path)


@router.put("/publish")
def publish_posts(
    payload: PublishRequest,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Publie ou dépublie un ensemble de posts, avec cascade optionnelle."""
    return service.publish(
        payload.ids,
        publish=payload.publish,
        recursive=payload.recursive,
        published_from=payload.published_from,
        published_until=payload.published_until,
    )


@router.post("/compile")
async def compile_preview(
    payload: CompileRequest,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Compile des données non enregistrées (références et assets injectés)."""
    return await service.compile_preview(payload.model_dump())


@router.get("/{post_id}")
def get_post(
    post_id: int,
    version_id: int | None = None,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Retourne un post avec ses meta, ou l'état d'une de ses versions."""
    return service.get_post(post_id, version_id=version_id)


@router.put("/{post_id}")
def update_post(
    post_id: int,
    payload: PostUpdateRequest,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Met à jour slug/nom/tags/meta; le slug réécrit tout le sous-arbre."""
    tags = None
    if payload.tags is not None:
        tags = [t.id for t in payload.tags if t.id]
    return service.update_post(
        post_id, user, slug=payload.slug, name=payload.name, tags=tags, meta=payload.meta
    )


@router.put("/{post_id}/content")
def update_content(
    post_id: int,
    content: dict[str, Any] = Body(...),
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Remplace le contenu structuré d'un post."""
    return service.update_content(post_id, content, user)


@router.post("/{post_id}/copy")
def copy_post(
    post_id: int,
    payload: PostCopyRequest,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Copie un post (récursivement si demandé)."""
    return service.copy_post(
        post_id,
        payload.slug,
        payload.name,
        user,
        parent_id=payload.parent_id,
        recursive=payload.recursive,
    )


@router.get("/{post_id}/versions")
def list_versions(
    post_id: int,
    count: bool = False,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Versions d'un post (plus récente d'abord), ou leur nombre."""
    return service.list_versions(post_id, count=count)


@router.post("/{post_id}/versions/{version_id}")
def restore_version(
    post_id: int,
    version_id: int,
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Restaure une version sur le post."""
    return service.restore_version(post_id, version_id, user)


@router.delete("/{post_id}/versions")
def delete_versions(
    post_id: int,
    ids: list[int] = Body(...),
    user: Author = current_user_dep,
    service: PostService = service_dep,
):
    """Supprime des versions du post; les ids qui ne sont pas des versions sont ignorés."""
    return {"deleted": service.delete_versions(ids, post_id=post_id)}
