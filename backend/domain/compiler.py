"""
Compilation des contenus publics.

Transforme le contenu structuré d'un post en document servable: les références
vers d'autres posts sont remplacées par ces posts compilés (récursivement,
dans la limite d'une profondeur fixe) et les références d'assets sont
fusionnées avec la représentation publique de l'asset.

La limite de profondeur (`debt`) borne le travail quel que soit le graphe de
références: au-delà, le marqueur `{"$post": id}` reste en place. Ce n'est pas
une détection de cycle; une chaîne acyclique plus profonde est simplement
tronquée au même endroit.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

import structlog

from backend.app.metrics import COMPILE_REQUESTS, COMPILE_TRUNCATED
from backend.core.constants import MAX_REFERENCE_DEBT, SLUG_SEPARATOR
from backend.domain.content_parser import get_path, parse_content, set_path
from backend.domain.entities import AssetRecord, PostRecord
from backend.domain.errors import InvalidPost
from backend.domain.mappers import map_public_asset, map_public_post_with_meta
from backend.domain.publishing import is_effectively_visible

log = structlog.get_logger(__name__)


class ContentLoader(Protocol):
    """Lectures ponctuelles (non transactionnelles) utilisées par le compilateur."""

    def load_post(
        self, post_id: Any | None = None, slug_path: str | None = None
    ) -> PostRecord | None: ...

    def load_assets(self, ids: Sequence[Any]) -> list[AssetRecord]: ...


def _distinct(values: Iterable[Any]) -> list[Any]:
    return [v for v in dict.fromkeys(values) if v is not None]


class ReferenceCompiler:
    """Compilateur récursif de posts avec injection des références."""

    def __init__(
        self,
        loader: ContentLoader,
        max_debt: int = MAX_REFERENCE_DEBT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.loader = loader
        self.max_debt = max_debt
        self._now = clock or (lambda: datetime.now(UTC))

    async def compile(
        self,
        slug_path: str | None = None,
        post_id: Any | None = None,
        data: Any | None = None,
        allow_null: bool = False,
        debt: int = 0,
    ) -> dict[str, Any] | None:
        """Compile un post donné par ses données, son id ou son chemin.

        Un post chargé (id ou chemin) doit être effectivement visible; sinon
        `InvalidPost`, ou None si `allow_null`.
        """
        if not slug_path and post_id is None and data is None:
            raise InvalidPost()

        if data is not None:
            post = data
        else:
            if slug_path and slug_path.startswith(SLUG_SEPARATOR):
                slug_path = slug_path[1:]
            post = await asyncio.to_thread(
                self.loader.load_post, post_id=post_id, slug_path=slug_path
            )
            if post is None or not is_effectively_visible(post, self._now()):
                if debt == 0:
                    COMPILE_REQUESTS.labels("not_found").inc()
                if allow_null:
                    log.debug("compile_reference_missing", post_id=post_id, debt=debt)
                    return None
                raise InvalidPost()

        parsed = parse_content(post)
        content = parsed.content
        public = map_public_post_with_meta(post)

        await self._inject_references(content, parsed.references, debt, post.id)
        await self._inject_assets(content, parsed.assets)

        if debt == 0:
            COMPILE_REQUESTS.labels("ok").inc()
        return {**public, "meta": {**public["meta"], "content": content}}

    async def _inject_references(
        self, content: dict[str, Any], references: dict[str, Any], debt: int, owner_id: Any
    ) -> None:
        ids = _distinct(references.values())
        if not ids:
            return
        if debt >= self.max_debt:
            COMPILE_TRUNCATED.inc(len(ids))
            log.debug("compile_reference_truncated", post_id=owner_id, debt=debt, refs=len(ids))
            return

        compiled = await asyncio.gather(
            *(self.compile(post_id=ref, allow_null=True, debt=debt + 1) for ref in ids)
        )
        by_id = dict(zip(ids, compiled, strict=True))
        for path in sorted(references):
            ref = references[path]
            if ref is not None:
                set_path(content, path, by_id.get(ref))

    async def _inject_assets(self, content: dict[str, Any], assets_refs: dict[str, Any]) -> None:
        ids = _distinct(assets_refs.values())
        if not ids:
            return
        assets = await asyncio.to_thread(self.loader.load_assets, ids)
        by_id = {a.id: map_public_asset(a) for a in assets}
        for path in sorted(assets_refs):
            existing = get_path(content, path, {})
            if not isinstance(existing, dict):
                existing = {}
            set_path(content, path, {**existing, **by_id.get(assets_refs[path], {})})
