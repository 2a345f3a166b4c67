# ============================================================
# Module : backend/infra/repo/post_repo.py
# Objet  : Accès SQL (CRUD + opérations de masse) pour Post/PostVersion.
# Notes  : toutes les méthodes travaillent dans la session fournie; la
#          transaction est pilotée par l'appelant (session_scope).
# ============================================================

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from sqlalchemy import delete, func, literal, or_, select, update
from sqlalchemy.orm import Session

from ...core.constants import SLUG_SEPARATOR
from ...domain.entities import PostType
from .models import AssetORM, ContentTypeORM, PostMetaORM, PostORM, TagORM, post_tags

_VERSION = PostType.POST_VERSION.value


def _subtree_clause(slug_path: str):
    return or_(
        PostORM.slug_path == slug_path,
        PostORM.slug_path.startswith(slug_path + SLUG_SEPARATOR, autoescape=True),
    )


class PostRepo:
    """Dépôt des posts, versions et collaborateurs (tags, assets, types)."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    # --- lectures -------------------------------------------------------

    def get(self, post_id: Any) -> PostORM | None:
        """Retourne un post (ou une version) par id, ou None."""
        if post_id is None:
            return None
        return self._session.get(PostORM, post_id)

    def get_live(self, post_id: Any) -> PostORM | None:
        """Retourne un post non-version par id, ou None."""
        post = self.get(post_id)
        if post is None or post.type == _VERSION:
            return None
        return post

    def get_version(self, version_id: Any, parent_id: Any) -> PostORM | None:
        """Retourne la version `version_id` si elle appartient à `parent_id`."""
        stmt = select(PostORM).where(
            PostORM.id == version_id,
            PostORM.parent_id == parent_id,
            PostORM.type == _VERSION,
        )
        return self._session.execute(stmt).scalars().first()

    def get_by_slug_path(self, slug_path: str) -> PostORM | None:
        """Retourne le post non-version situé à `slug_path`."""
        stmt = select(PostORM).where(
            PostORM.slug_path == slug_path, PostORM.type != _VERSION
        )
        return self._session.execute(stmt).scalars().first()

    def find_by_ids(self, ids: Iterable[Any]) -> list[PostORM]:
        """Retourne les posts non-version dont l'id figure dans `ids`."""
        ids = list(ids)
        if not ids:
            return []
        stmt = (
            select(PostORM)
            .where(PostORM.id.in_(ids), PostORM.type != _VERSION)
            .order_by(PostORM.id)
            .execution_options(populate_existing=True)
        )
        return list(self._session.execute(stmt).scalars().all())

    def find_subtree(
        self, slug_path: str, types: Sequence[str] | None = None
    ) -> list[PostORM]:
        """Retourne le post à `slug_path` et tous ses descendants, par chemin croissant."""
        stmt = select(PostORM).where(_subtree_clause(slug_path), PostORM.type != _VERSION)
        if types:
            stmt = stmt.where(PostORM.type.in_(list(types)))
        stmt = stmt.order_by(PostORM.slug_path.asc())
        return list(self._session.execute(stmt).scalars().all())

    def list_posts(
        self,
        ids: Sequence[Any] | None = None,
        types: Sequence[str] | None = None,
        content_type_ids: Sequence[Any] | None = None,
        search: str | None = None,
    ) -> list[PostORM]:
        """Liste les posts non-version filtrés, du plus récemment modifié au plus ancien."""
        stmt = select(PostORM).where(PostORM.type != _VERSION)
        if ids:
            stmt = stmt.where(PostORM.id.in_(list(ids)))
        if types:
            stmt = stmt.where(PostORM.type.in_(list(types)))
        if content_type_ids:
            stmt = stmt.where(PostORM.content_type_id.in_(list(content_type_ids)))
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(PostORM.name).like(pattern),
                    func.lower(PostORM.slug).like(pattern),
                )
            )
        stmt = stmt.order_by(PostORM.updated_at.desc(), PostORM.id.desc())
        return list(self._session.execute(stmt).scalars().all())

    def list_versions(self, parent_id: Any) -> list[PostORM]:
        """Versions d'un post, de la plus récente à la plus ancienne."""
        stmt = (
            select(PostORM)
            .where(PostORM.parent_id == parent_id, PostORM.type == _VERSION)
            .order_by(PostORM.created_at.desc(), PostORM.id.desc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def count_versions(self, parent_id: Any) -> int:
        """Nombre de versions d'un post, sans matérialiser les lignes."""
        stmt = (
            select(func.count())
            .select_from(PostORM)
            .where(PostORM.parent_id == parent_id, PostORM.type == _VERSION)
        )
        return int(self._session.execute(stmt).scalar_one())

    def tags_by_ids(self, ids: Iterable[Any]) -> list[TagORM]:
        ids = [i for i in ids if i]
        if not ids:
            return []
        stmt = select(TagORM).where(TagORM.id.in_(ids)).order_by(TagORM.id)
        return list(self._session.execute(stmt).scalars().all())

    def get_content_type(
        self, content_type_id: Any, kinds: Sequence[str]
    ) -> ContentTypeORM | None:
        """Retourne le type de contenu s'il existe et appartient à `kinds`."""
        stmt = select(ContentTypeORM).where(
            ContentTypeORM.id == content_type_id, ContentTypeORM.type.in_(list(kinds))
        )
        return self._session.execute(stmt).scalars().first()

    def assets_by_ids(self, ids: Iterable[Any]) -> list[AssetORM]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(AssetORM).where(AssetORM.id.in_(ids))
        return list(self._session.execute(stmt).scalars().all())

    # --- écritures ------------------------------------------------------

    def add(self, post: PostORM) -> PostORM:
        """Ajoute une ligne et la flush. Lève IntegrityError sur `slug_path` en doublon."""
        self._session.add(post)
        self._session.flush()
        return post

    def save(self, post: PostORM) -> PostORM:
        """Flush les modifications d'un post chargé."""
        self._session.flush()
        return post

    def replace_path_prefix(self, old_path: str, new_path: str) -> int:
        """Réécrit en une requête `old_path` et `old_path/...` en `new_path...`.

        Les objets déjà chargés dans la session sont resynchronisés (stratégie
        "fetch"). Retourne le nombre de lignes modifiées.
        """
        stmt = (
            update(PostORM)
            .where(_subtree_clause(old_path), PostORM.type != _VERSION)
            .values(
                slug_path=literal(new_path) + func.substr(PostORM.slug_path, len(old_path) + 1)
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self._session.execute(stmt)
        return result.rowcount or 0

    def bulk_update(self, ids: Sequence[Any], values: dict[str, Any]) -> int:
        """Applique `values` à tous les posts non-version de `ids` en une requête."""
        if not ids:
            return 0
        stmt = (
            update(PostORM)
            .where(PostORM.id.in_(list(ids)), PostORM.type != _VERSION)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return result.rowcount or 0

    def replace_meta(
        self,
        post: PostORM,
        items: Iterable[tuple[str, Any]],
        match: Callable[[str], bool] | None = None,
    ) -> None:
        """Remplace les meta dont la clé satisfait `match` (toutes si None) par `items`."""
        kept = [m for m in post.meta if match is not None and not match(m.key)]
        post.meta = kept + [PostMetaORM(key=k, value=v) for k, v in items]

    def delete_rows(self, ids: Sequence[Any]) -> int:
        """Supprime des lignes `posts` ainsi que leurs meta et liens de tags."""
        ids = list(ids)
        if not ids:
            return 0
        self._session.execute(delete(PostMetaORM).where(PostMetaORM.post_id.in_(ids)))
        self._session.execute(delete(post_tags).where(post_tags.c.post_id.in_(ids)))
        result = self._session.execute(
            delete(PostORM)
            .where(PostORM.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def version_ids(self, ids: Sequence[Any], parent_id: Any | None = None) -> list[int]:
        """Filtre `ids` sur les lignes de type `post_version` (optionnellement d'un parent)."""
        if not ids:
            return []
        stmt = select(PostORM.id).where(PostORM.id.in_(list(ids)), PostORM.type == _VERSION)
        if parent_id is not None:
            stmt = stmt.where(PostORM.parent_id == parent_id)
        return list(self._session.execute(stmt).scalars().all())

    def version_ids_of(self, parent_ids: Sequence[Any]) -> list[int]:
        """Ids des versions rattachées à `parent_ids`."""
        if not parent_ids:
            return []
        stmt = select(PostORM.id).where(
            PostORM.parent_id.in_(list(parent_ids)), PostORM.type == _VERSION
        )
        return list(self._session.execute(stmt).scalars().all())
