"""
Instantanés immuables des posts (versions).

Chaque édition d'un post vivant commence par `snapshot`, qui persiste une ligne
`post_version` portant une copie du nom, des meta, des tags et du type de
contenu. Restaurer une version prend d'abord un instantané de l'état courant:
la restauration est elle-même annulable.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

import structlog

from backend.app.metrics import POST_VERSIONS_CREATED
from backend.domain.entities import Author, PostStatus, PostType
from backend.domain.errors import InvalidPost, InvalidPostType, InvalidPostVersion
from backend.infra.repo.models import PostMetaORM, PostORM
from backend.infra.repo.post_repo import PostRepo

log = structlog.get_logger(__name__)


class VersionSnapshotter:
    """Création, liste, restauration et suppression des versions d'un post."""

    def __init__(self, repo: PostRepo) -> None:
        self.repo = repo

    def snapshot(self, post: PostORM, author: Author | None) -> PostORM:
        """Persiste une copie de l'état éditable de `post` sans le modifier."""
        if post.type == PostType.POST_VERSION:
            raise InvalidPostType()
        version = PostORM(
            type=PostType.POST_VERSION.value,
            name=post.name,
            slug=uuid.uuid4().hex,
            slug_path=uuid.uuid4().hex,
            status=PostStatus.DRAFT.value,
            content_type_id=post.content_type_id,
            meta=[PostMetaORM(key=m.key, value=m.value) for m in post.meta],
            tags=list(post.tags),
            author_id=author.id if author else None,
            parent_id=post.id,
        )
        self.repo.add(version)
        POST_VERSIONS_CREATED.inc()
        log.info("post_version_created", post_id=post.id, version_id=version.id)
        return version

    def list_versions(self, post_id: Any, count: bool = False) -> list[PostORM] | int:
        """Versions de `post_id` (plus récente d'abord), ou leur nombre si `count`."""
        if count:
            return self.repo.count_versions(post_id)
        return self.repo.list_versions(post_id)

    def restore(self, post_id: Any, version_id: Any, author: Author | None) -> PostORM:
        """Écrase nom, tags et contenu de `post_id` avec ceux de `version_id`."""
        post = self.repo.get_live(post_id)
        if post is None:
            raise InvalidPost()
        version = self.repo.get_version(version_id, post.id)
        if version is None:
            raise InvalidPostVersion()

        self.snapshot(post, author)

        self.repo.replace_meta(post, [(m.key, m.value) for m in version.meta])
        post.tags = list(version.tags)
        post.name = version.name
        if author is not None:
            post.author_id = author.id
        self.repo.save(post)
        log.info("post_version_restored", post_id=post.id, version_id=version.id)
        return post

    def delete_versions(self, ids: Sequence[Any], parent_id: Any | None = None) -> int:
        """Supprime les lignes `post_version` parmi `ids`; les autres ids sont ignorés."""
        version_ids = self.repo.version_ids(ids, parent_id=parent_id)
        deleted = self.repo.delete_rows(version_ids)
        log.info("post_versions_deleted", requested=len(ids), deleted=deleted)
        return deleted
