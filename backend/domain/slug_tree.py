"""
Gestion de l'arborescence des chemins de slugs.

Invariant maintenu: le `slug_path` d'un post vaut `parent.slug_path + "/" + slug`
s'il a un parent, sinon `slug`. Les renommages réécrivent tout le sous-arbre en
une seule requête dans la transaction de l'appelant; les copies recréent un
sous-arbre nœud par nœud, dans l'ordre croissant des chemins.
"""

from __future__ import annotations

import structlog

from backend.app.metrics import SLUG_PATH_REWRITES
from backend.core.constants import COPYABLE_POST_TYPES, SLUG_SEPARATOR
from backend.domain.entities import Author, PostStatus
from backend.domain.errors import InvalidParent, InvalidSlug, InvalidSource
from backend.infra.repo.models import PostMetaORM, PostORM
from backend.infra.repo.post_repo import PostRepo

log = structlog.get_logger(__name__)


def compute_child_path(parent_path: str | None, slug: str) -> str:
    """Chemin d'un enfant `slug` sous `parent_path` (racine si None)."""
    if not slug or SLUG_SEPARATOR in slug:
        raise InvalidSlug(f"invalid slug: {slug!r}")
    if parent_path:
        return f"{parent_path}{SLUG_SEPARATOR}{slug}"
    return slug


def parent_path_of(slug_path: str) -> str | None:
    """Chemin du parent (dernier segment retiré), None pour une racine."""
    head, sep, _ = slug_path.rpartition(SLUG_SEPARATOR)
    return head if sep else None


def in_subtree(slug_path: str, root_path: str) -> bool:
    return slug_path == root_path or slug_path.startswith(root_path + SLUG_SEPARATOR)


def rebase_path(slug_path: str, old_root: str, new_root: str) -> str:
    """Remplace le préfixe `old_root` de `slug_path` par `new_root`."""
    if not in_subtree(slug_path, old_root):
        raise ValueError(f"{slug_path!r} is not under {old_root!r}")
    return new_root + slug_path[len(old_root) :]


class SlugTree:
    """Opérations sur l'arbre des chemins, dans la transaction d'un `PostRepo`."""

    def __init__(self, repo: PostRepo):
        self.repo = repo

    def find_descendants(self, post: PostORM) -> list[PostORM]:
        """Le post lui-même et tous les posts non-version situés sous son chemin."""
        return self.repo.find_subtree(post.slug_path)

    def rename(self, post: PostORM, new_slug: str) -> int:
        """Change le slug de `post` et réécrit les chemins de tout son sous-arbre.

        Retourne le nombre de lignes dont le chemin a été réécrit (le post inclus).
        Une collision remonte en IntegrityError au flush; la traduction en
        `DuplicateSlug` et le rollback sont à la charge de l'unité de travail.
        """
        old_path = post.slug_path
        # le préfixe du chemin courant fait foi, même si le parent a été supprimé
        new_path = compute_child_path(parent_path_of(old_path), new_slug)
        if new_path == old_path:
            return 0
        affected = self.repo.replace_path_prefix(old_path, new_path)
        post.slug = new_slug
        post.slug_path = new_path
        self.repo.save(post)
        SLUG_PATH_REWRITES.inc(affected)
        log.info("post_renamed", post_id=post.id, old=old_path, new=new_path, affected=affected)
        return affected

    def copy(
        self,
        source_id: int,
        destination_slug: str,
        destination_parent_id: int | None = None,
        recursive: bool = False,
        name: str | None = None,
        author: Author | None = None,
    ) -> list[PostORM]:
        """Copie `source_id` (et son sous-arbre si `recursive`) sous un nouveau chemin.

        Le sous-arbre est limité aux types `folder`/`page`/`fragment`, la racine
        copiée quel que soit son type. Les nœuds sont créés séquentiellement par
        chemin croissant: le parent d'un nœud est toujours créé avant lui et
        retrouvé via l'index des chemins déjà créés.
        """
        parent = None
        if destination_parent_id is not None:
            parent = self.repo.get_live(destination_parent_id)
            if parent is None:
                raise InvalidParent()
        source = self.repo.get_live(source_id)
        if source is None:
            raise InvalidSource()

        nodes = [source]
        if recursive:
            nodes += [
                n
                for n in self.repo.find_subtree(source.slug_path, COPYABLE_POST_TYPES)
                if n.id != source.id
            ]

        root_path = compute_child_path(parent.slug_path if parent else None, destination_slug)
        created: dict[str, PostORM] = {}
        copies: list[PostORM] = []
        for node in nodes:
            is_root = node.id == source.id
            slug_path = rebase_path(node.slug_path, source.slug_path, root_path)
            if is_root:
                node_parent = parent
            else:
                node_parent = created.get(parent_path_of(slug_path))
                if node_parent is None:
                    # ancêtre hors des types copiés: le nœud serait orphelin
                    log.warning("post_copy_skipped_orphan", source_id=node.id, slug_path=slug_path)
                    continue
            clone = PostORM(
                type=node.type,
                name=name if is_root and name else node.name,
                slug=destination_slug if is_root else node.slug,
                slug_path=slug_path,
                status=PostStatus.DRAFT.value,
                content_type_id=node.content_type_id,
                parent_id=node_parent.id if node_parent else None,
                author_id=author.id if author else None,
                meta=[PostMetaORM(key=m.key, value=m.value) for m in node.meta],
                tags=list(node.tags),
            )
            self.repo.add(clone)
            created[slug_path] = clone
            copies.append(clone)
        log.info(
            "post_copied",
            source_id=source.id,
            destination=root_path,
            count=len(copies),
            recursive=recursive,
        )
        return copies
