"""
Entités du domaine métier.

Ce module définit les types fermés (type de post, statut), l'auteur opaque et
les enregistrements détachés manipulés par le compilateur de contenus.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class PostType(StrEnum):
    """Variantes de post. `post_version` désigne un instantané immuable."""

    FOLDER = "folder"
    PAGE = "page"
    FRAGMENT = "fragment"
    POST = "post"
    POST_VERSION = "post_version"


class PostStatus(StrEnum):
    """Statut de publication d'un post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class Author(BaseModel):
    """Utilisateur agissant, traité comme une référence opaque par le cœur."""

    id: str
    email: str | None = None


@dataclass
class PublishWindow:
    """Fenêtre de visibilité optionnelle (bornes absentes = non bornée)."""

    published_from: datetime | None = None
    published_until: datetime | None = None


@dataclass
class MetaItem:
    """Paire clé/valeur de meta (clé en notation pointée)."""

    key: str
    value: Any


@dataclass
class TagRef:
    """Référence de tag."""

    id: int
    name: str


@dataclass
class PostRecord:
    """
    Post détaché de toute session (lecture ponctuelle ou données de prévisualisation).

    Expose les mêmes attributs que la ligne ORM afin que les mappers et
    l'évaluateur de publication acceptent indifféremment l'un ou l'autre.
    """

    id: int | None
    type: str
    name: str
    slug: str | None = None
    slug_path: str | None = None
    status: str = PostStatus.DRAFT
    published_at: datetime | None = None
    published_from: datetime | None = None
    published_until: datetime | None = None
    parent_id: int | None = None
    content_type_id: int | None = None
    author_id: str | None = None
    tags: list[TagRef] = field(default_factory=list)
    meta: list[MetaItem] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class AssetRecord:
    """Asset détaché (fichier référencé depuis un contenu)."""

    id: int
    name: str
    mime_type: str | None = None
    url: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)
