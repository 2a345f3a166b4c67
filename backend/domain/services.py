"""
Service applicatif des posts.

Chaque opération d'écriture s'exécute dans une unique transaction (unité de
travail): tout est commité ensemble ou rien ne l'est. Les violations
d'unicité du store sont traduites en `DuplicateSlug` à cette frontière.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from backend.core.constants import ALLOWED_CONTENT_TYPE_KINDS, CONTENT_META_PREFIX
from backend.domain.compiler import ContentLoader, ReferenceCompiler
from backend.domain.content_parser import flatten, is_content_key
from backend.domain.entities import (
    Author,
    MetaItem,
    PostRecord,
    PostStatus,
    PostType,
    PublishWindow,
    TagRef,
)
from backend.domain.errors import (
    DomainError,
    DuplicateSlug,
    InvalidContentType,
    InvalidParent,
    InvalidPost,
    InvalidPostType,
    InvalidPostVersion,
)
from backend.domain.mappers import map_post, map_post_with_meta
from backend.domain.publishing import PublishStateEvaluator
from backend.domain.slug_tree import SlugTree, compute_child_path
from backend.domain.versioning import VersionSnapshotter
from backend.infra.repo.content_loader import SqlContentLoader
from backend.infra.repo.db import session_scope
from backend.infra.repo.models import PostORM
from backend.infra.repo.post_repo import PostRepo

log = structlog.get_logger(__name__)


class PostService:
    """Service métier des posts: arbre, versions, publication et compilation.

    Responsabilités:
    - Ouvrir une transaction par opération d'écriture et traduire les conflits.
    - Prendre un instantané avant toute modification d'un post vivant.
    - Projeter les résultats en dicts avant la fermeture de la session.
    """

    def __init__(
        self,
        engine: Engine,
        loader: ContentLoader | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialise le service avec ses dépendances.

        Paramètres:
        - engine: moteur SQLAlchemy du store.
        - loader: chargeur des lectures de compilation (SQL par défaut).
        - clock: horloge injectable (UTC).
        """
        self.engine = engine
        self._now = clock or (lambda: datetime.now(UTC))
        self.compiler = ReferenceCompiler(loader or SqlContentLoader(engine), clock=self._now)

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[PostRepo]:
        try:
            with session_scope(self.engine) as session:
                yield PostRepo(session)
        except IntegrityError as err:
            log.warning("post_store_conflict", operation=operation, error=str(err.orig))
            raise DuplicateSlug() from err
        except DomainError as err:
            log.info("post_operation_rejected", operation=operation, code=err.code)
            raise

    def _load_editable(self, repo: PostRepo, post_id: Any) -> PostORM:
        post = repo.get(post_id)
        if post is None:
            raise InvalidPost()
        if post.type == PostType.POST_VERSION:
            raise InvalidPostType()
        return post

    # --- lectures -------------------------------------------------------

    def list_posts(
        self,
        ids: Sequence[Any] | None = None,
        types: Sequence[str] | None = None,
        content_type_ids: Sequence[Any] | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """Liste filtrée des posts (versions exclues)."""
        with self._unit_of_work("list_posts") as repo:
            return [map_post(p) for p in repo.list_posts(ids, types, content_type_ids, search)]

    def get_post(self, post_id: Any, version_id: Any | None = None) -> dict[str, Any]:
        """Post avec meta; avec `version_id`, l'état de la version sous l'id du post."""
        with self._unit_of_work("get_post") as repo:
            post = repo.get(post_id)
            if post is None:
                raise InvalidPost()
            if version_id is None:
                return map_post_with_meta(post)
            version = repo.get_version(version_id, post.id)
            if version is None:
                raise InvalidPostVersion()
            return map_post_with_meta(version, id=post.id, version_id=version.id)

    def get_post_by_slug_path(self, slug_path: str) -> dict[str, Any]:
        """Post (brouillon compris) par chemin, `/` initial ignoré."""
        if slug_path.startswith("/"):
            slug_path = slug_path[1:]
        with self._unit_of_work("get_post_by_slug_path") as repo:
            post = repo.get_by_slug_path(slug_path)
            if post is None:
                raise InvalidPost()
            return map_post_with_meta(post)

    # --- écritures ------------------------------------------------------

    def create_post(
        self,
        name: str,
        slug: str,
        author: Author | None,
        type: str = PostType.POST.value,
        parent_id: Any | None = None,
        content_type_id: Any | None = None,
    ) -> dict[str, Any]:
        """Crée un post sous `parent_id` (ou à la racine)."""
        if type == PostType.POST_VERSION or type not in set(PostType):
            raise InvalidPostType()
        with self._unit_of_work("create_post") as repo:
            parent = None
            if parent_id is not None:
                parent = repo.get_live(parent_id)
                if parent is None:
                    raise InvalidParent()
            if content_type_id is not None:
                if repo.get_content_type(content_type_id, ALLOWED_CONTENT_TYPE_KINDS) is None:
                    raise InvalidContentType()
            now = self._now()
            post = repo.add(
                PostORM(
                    name=name,
                    slug=slug,
                    slug_path=compute_child_path(parent.slug_path if parent else None, slug),
                    type=type,
                    status=PostStatus.DRAFT.value,
                    parent_id=parent.id if parent else None,
                    content_type_id=content_type_id,
                    author_id=author.id if author else None,
                    created_at=now,
                    updated_at=now,
                )
            )
            log.info("post_created", post_id=post.id, slug_path=post.slug_path)
            return map_post(post)

    def update_post(
        self,
        post_id: Any,
        author: Author | None,
        slug: str | None = None,
        name: str | None = None,
        tags: Sequence[Any] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Met à jour slug (avec réécriture du sous-arbre), nom, tags et meta hors contenu."""
        with self._unit_of_work("update_post") as repo:
            post = self._load_editable(repo, post_id)
            VersionSnapshotter(repo).snapshot(post, author)

            if slug:
                SlugTree(repo).rename(post, slug)
            if name:
                post.name = name
            if tags is not None:
                post.tags = repo.tags_by_ids(tags)
            if meta is not None:
                items = [(k, v) for k, v in flatten(meta).items() if not is_content_key(k)]
                repo.replace_meta(post, items, match=lambda key: not is_content_key(key))

            self._touch(post, author)
            repo.save(post)
            return map_post(post)

    def update_content(
        self, post_id: Any, content: dict[str, Any], author: Author | None
    ) -> dict[str, Any]:
        """Remplace le contenu structuré (meta `content.*`) d'un post."""
        with self._unit_of_work("update_content") as repo:
            post = self._load_editable(repo, post_id)
            VersionSnapshotter(repo).snapshot(post, author)

            items = [(f"{CONTENT_META_PREFIX}.{k}", v) for k, v in flatten(content).items()]
            repo.replace_meta(post, items, match=is_content_key)

            self._touch(post, author)
            repo.save(post)
            return map_post_with_meta(post)

    def delete_posts(self, ids: Sequence[Any]) -> int:
        """Supprime des posts et leurs versions; les enfants ne sont pas supprimés."""
        if not ids:
            return 0
        with self._unit_of_work("delete_posts") as repo:
            versions = repo.version_ids_of(ids)
            deleted = repo.delete_rows(list(ids))
            repo.delete_rows(versions)
            log.info("posts_deleted", requested=len(ids), deleted=deleted, versions=len(versions))
            return deleted

    def copy_post(
        self,
        post_id: Any,
        slug: str,
        name: str,
        author: Author | None,
        parent_id: Any | None = None,
        recursive: bool = False,
    ) -> list[dict[str, Any]]:
        """Copie un post (et son sous-arbre si `recursive`) vers `parent_id`/`slug`."""
        with self._unit_of_work("copy_post") as repo:
            copies = SlugTree(repo).copy(
                post_id,
                slug,
                destination_parent_id=parent_id,
                recursive=recursive,
                name=name,
                author=author,
            )
            return [map_post(c) for c in copies]

    def publish(
        self,
        ids: Sequence[Any],
        publish: bool = True,
        recursive: bool = False,
        published_from: datetime | None = None,
        published_until: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Publie ou dépublie `ids` en une écriture de masse."""
        with self._unit_of_work("publish") as repo:
            evaluator = PublishStateEvaluator(repo, clock=self._now)
            if publish:
                posts = evaluator.set_published(
                    ids, PublishWindow(published_from, published_until), recursive
                )
            else:
                posts = evaluator.set_unpublished(ids, recursive)
            return [map_post(p) for p in posts]

    # --- versions -------------------------------------------------------

    def list_versions(self, post_id: Any, count: bool = False) -> list[dict[str, Any]] | dict:
        """Versions d'un post, ou `{"count": n}`."""
        with self._unit_of_work("list_versions") as repo:
            result = VersionSnapshotter(repo).list_versions(post_id, count=count)
            if count:
                return {"count": result}
            return [map_post_with_meta(v) for v in result]

    def restore_version(
        self, post_id: Any, version_id: Any, author: Author | None
    ) -> dict[str, Any]:
        """Restaure `version_id` sur `post_id` (après instantané de l'état courant)."""
        with self._unit_of_work("restore_version") as repo:
            post = VersionSnapshotter(repo).restore(post_id, version_id, author)
            post.updated_at = self._now()
            repo.save(post)
            return map_post_with_meta(post)

    def delete_versions(self, ids: Sequence[Any], post_id: Any | None = None) -> int:
        if not ids:
            return 0
        with self._unit_of_work("delete_versions") as repo:
            return VersionSnapshotter(repo).delete_versions(ids, parent_id=post_id)

    # --- compilation ----------------------------------------------------

    async def compile(
        self, slug_path: str | None = None, post_id: Any | None = None
    ) -> dict[str, Any]:
        """Compile un post publié et visible (lecture publique)."""
        return await self.compiler.compile(slug_path=slug_path, post_id=post_id)

    async def compile_preview(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Compile des données non enregistrées (prévisualisation d'édition).

        Les feuilles vides de `meta` sont ignorées.
        """
        flat = flatten(payload.get("meta") or {})
        record = PostRecord(
            id=payload.get("id"),
            type=payload.get("type") or PostType.POST.value,
            name=payload.get("name") or "",
            slug=payload.get("slug"),
            slug_path=payload.get("slug_path"),
            tags=[
                TagRef(id=t.get("id"), name=t.get("name", ""))
                for t in payload.get("tags") or []
                if isinstance(t, dict)
            ],
            meta=[MetaItem(key=k, value=v) for k, v in flat.items() if v],
        )
        return await self.compiler.compile(data=record)

    def _touch(self, post: PostORM, author: Author | None) -> None:
        post.updated_at = self._now()
        if author is not None:
            post.author_id = author.id
