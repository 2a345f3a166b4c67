"""
Lectures ponctuelles pour le compilateur de contenus.

Chaque appel ouvre sa propre session courte et renvoie des enregistrements
détachés: les compilations concurrentes ne partagent ni session ni
transaction et tolèrent une légère obsolescence.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy.engine import Engine

from ...domain.entities import AssetRecord, MetaItem, PostRecord, TagRef
from .db import session_scope
from .models import AssetORM, PostORM
from .post_repo import PostRepo


def to_post_record(row: PostORM) -> PostRecord:
    """Copie détachée d'une ligne `posts` (meta et tags inclus)."""
    return PostRecord(
        id=row.id,
        type=row.type,
        name=row.name,
        slug=row.slug,
        slug_path=row.slug_path,
        status=row.status,
        published_at=row.published_at,
        published_from=row.published_from,
        published_until=row.published_until,
        parent_id=row.parent_id,
        content_type_id=row.content_type_id,
        author_id=row.author_id,
        tags=[TagRef(id=t.id, name=t.name) for t in row.tags],
        meta=[MetaItem(key=m.key, value=m.value) for m in row.meta],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_asset_record(row: AssetORM) -> AssetRecord:
    return AssetRecord(
        id=row.id,
        name=row.name,
        mime_type=row.mime_type,
        url=row.url,
        meta=dict(row.meta or {}),
    )


class SqlContentLoader:
    """Chargeur SQLAlchemy pour `ReferenceCompiler`."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load_post(
        self, post_id: Any | None = None, slug_path: str | None = None
    ) -> PostRecord | None:
        """Post non-version par chemin (prioritaire) ou par id."""
        with session_scope(self._engine) as session:
            repo = PostRepo(session)
            if slug_path:
                row = repo.get_by_slug_path(slug_path)
            else:
                row = repo.get_live(post_id)
            return to_post_record(row) if row is not None else None

    def load_assets(self, ids: Sequence[Any]) -> list[AssetRecord]:
        with session_scope(self._engine) as session:
            return [to_asset_record(a) for a in PostRepo(session).assets_by_ids(ids)]
