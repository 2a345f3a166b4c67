"""
Projections des entités vers leurs représentations JSON.

Fonctions pures: elles acceptent indifféremment une ligne ORM ou un
enregistrement détaché exposant les mêmes attributs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from backend.domain.content_parser import is_content_key, unflatten
from backend.domain.publishing import as_utc


def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def _tags(post: Any) -> list[dict[str, Any]]:
    return [{"id": t.id, "name": t.name} for t in (post.tags or [])]


def map_post(post: Any) -> dict[str, Any]:
    """Représentation d'administration d'un post, sans meta."""
    return {
        "id": post.id,
        "type": post.type,
        "name": post.name,
        "slug": post.slug,
        "slug_path": post.slug_path,
        "status": post.status,
        "published_at": _iso(post.published_at),
        "published_from": _iso(post.published_from),
        "published_until": _iso(post.published_until),
        "parent_id": post.parent_id,
        "content_type_id": post.content_type_id,
        "author_id": post.author_id,
        "tags": _tags(post),
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
    }


def map_post_with_meta(post: Any, **extra: Any) -> dict[str, Any]:
    """Représentation d'administration avec l'arbre complet des meta."""
    data = map_post(post)
    data["meta"] = unflatten((m.key, m.value) for m in (post.meta or []))
    data.update(extra)
    return data


def map_public_post_with_meta(post: Any) -> dict[str, Any]:
    """Représentation publique: pas d'auteur ni d'état éditorial, meta hors contenu."""
    return {
        "id": post.id,
        "type": post.type,
        "name": post.name,
        "slug": post.slug,
        "slug_path": post.slug_path,
        "published_at": _iso(post.published_at),
        "tags": [t.name for t in (post.tags or [])],
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
        "meta": unflatten(
            (m.key, m.value) for m in (post.meta or []) if not is_content_key(m.key)
        ),
    }


def map_public_asset(asset: Any) -> dict[str, Any]:
    """Représentation publique d'un asset."""
    return {
        "id": asset.id,
        "name": asset.name,
        "mime_type": asset.mime_type,
        "url": asset.url,
        "meta": dict(asset.meta or {}),
    }
