"""
Évaluation et transitions de l'état de publication.

Un post n'est visible que s'il est `published` et que l'instant courant tombe
dans sa fenêtre optionnelle `[published_from, published_until]`. Les
transitions de masse s'appliquent en une seule requête, éventuellement
étendue aux descendants.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog

from backend.app.metrics import POST_PUBLISH_UPDATES
from backend.domain.entities import PostStatus, PublishWindow
from backend.domain.errors import InvalidIds
from backend.domain.slug_tree import SlugTree
from backend.infra.repo.models import PostORM
from backend.infra.repo.post_repo import PostRepo

log = structlog.get_logger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise un datetime en UTC (un datetime naïf est supposé UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_effectively_visible(post: Any, now: datetime | None = None) -> bool:
    """Visibilité effective d'un post (ORM ou enregistrement détaché) à `now`."""
    if post is None or post.status != PostStatus.PUBLISHED:
        return False
    now = as_utc(now) or datetime.now(UTC)
    start = as_utc(post.published_from)
    end = as_utc(post.published_until)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


class PublishStateEvaluator:
    """Publication / dépublication en masse, avec cascade optionnelle."""

    def __init__(
        self,
        repo: PostRepo,
        tree: SlugTree | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repo = repo
        self.tree = tree or SlugTree(repo)
        self._now = clock or (lambda: datetime.now(UTC))

    def set_published(
        self,
        ids: Sequence[Any],
        window: PublishWindow | None = None,
        recursive: bool = False,
    ) -> list[PostORM]:
        """Publie `ids` (et leurs descendants si `recursive`) avec la fenêtre donnée."""
        window = window or PublishWindow()
        now = self._now()
        return self._apply(
            ids,
            {
                "status": PostStatus.PUBLISHED.value,
                "published_at": now,
                "published_from": as_utc(window.published_from),
                "published_until": as_utc(window.published_until),
                "updated_at": now,
            },
            recursive,
            action="publish",
        )

    def set_unpublished(self, ids: Sequence[Any], recursive: bool = False) -> list[PostORM]:
        """Repasse `ids` (et leurs descendants si `recursive`) en brouillon."""
        return self._apply(
            ids,
            {
                "status": PostStatus.DRAFT.value,
                "published_at": None,
                "published_from": None,
                "published_until": None,
                "updated_at": self._now(),
            },
            recursive,
            action="unpublish",
        )

    def _apply(
        self, ids: Sequence[Any], values: dict[str, Any], recursive: bool, action: str
    ) -> list[PostORM]:
        posts = self.repo.find_by_ids(ids)
        if not posts:
            raise InvalidIds()

        target_ids = {p.id for p in posts}
        if recursive:
            for post in posts:
                target_ids.update(d.id for d in self.tree.find_descendants(post))

        updated = self.repo.bulk_update(sorted(target_ids), values)
        POST_PUBLISH_UPDATES.labels(action).inc(updated)
        log.info(
            "posts_publish_state_changed",
            action=action,
            requested=len(posts),
            updated=updated,
            recursive=recursive,
        )
        return self.repo.find_by_ids(ids)
