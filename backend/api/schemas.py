# Schémas Pydantic exposés par l'API (requêtes).

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from backend.core.constants import NAME_MAX_LEN, SLUG_MAX_LEN

SLUG_PATTERN = r"^[^/]+$"

EditablePostType = Literal["folder", "page", "fragment", "post"]


class PostCreateRequest(BaseModel):
    """Création d'un post.

    Champs:
    - name: libellé affiché
    - slug: segment de chemin (sans `/`)
    - type: folder/page/fragment/post
    - parent_id: parent optionnel
    - content_type_id: schéma de contenu optionnel
    """

    name: str = Field(max_length=NAME_MAX_LEN, min_length=1)
    slug: str = Field(max_length=SLUG_MAX_LEN, min_length=1, pattern=SLUG_PATTERN)
    type: EditablePostType = "post"
    parent_id: int | None = None
    content_type_id: int | None = None


class TagIn(BaseModel):
    id: int | None = None
    name: str | None = None


class PostUpdateRequest(BaseModel):
    """Mise à jour partielle d'un post (slug, nom, tags, meta hors contenu)."""

    slug: str | None = Field(default=None, max_length=SLUG_MAX_LEN, pattern=SLUG_PATTERN)
    name: str | None = Field(default=None, max_length=NAME_MAX_LEN)
    tags: list[TagIn] | None = None
    meta: dict[str, Any] | None = None


class PostCopyRequest(BaseModel):
    """Copie d'un post vers un nouveau chemin."""

    name: str = Field(max_length=NAME_MAX_LEN, min_length=1)
    slug: str = Field(max_length=SLUG_MAX_LEN, min_length=1, pattern=SLUG_PATTERN)
    parent_id: int | None = None
    recursive: bool = False


class PublishRequest(BaseModel):
    """Publication / dépublication de masse."""

    ids: list[int]
    publish: bool = True
    recursive: bool = False
    published_from: datetime | None = None
    published_until: datetime | None = None


class CompileRequest(BaseModel):
    """Données non enregistrées à compiler (prévisualisation)."""

    id: int | None = None
    type: str = "post"
    name: str = ""
    slug: str | None = None
    slug_path: str | None = None
    tags: list[TagIn] = []
    meta: dict[str, Any] = {}
