"""SQLAlchemy models for persistence layer (posts, versions, tags, assets)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from backend.core.constants import NAME_MAX_LEN, SLUG_MAX_LEN, SLUG_PATH_MAX_LEN


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class TagORM(Base):
    """Modèle ORM pour les tags."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(NAME_MAX_LEN), nullable=False, unique=True)


class ContentTypeORM(Base):
    """Modèle ORM pour les schémas de contenu (référence opaque)."""

    __tablename__ = "content_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(NAME_MAX_LEN), nullable=False)
    type = Column(String(32), nullable=False)


class AssetORM(Base):
    """Modèle ORM pour les assets référencés depuis les contenus."""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(NAME_MAX_LEN), nullable=False)
    mime_type = Column(String(128), nullable=True)
    url = Column(String(SLUG_PATH_MAX_LEN), nullable=True)
    meta = Column(JSON, nullable=False, default=dict)


class PostMetaORM(Base):
    """Paire clé/valeur de meta d'un post (clé en notation pointée)."""

    __tablename__ = "post_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    key = Column(String(512), nullable=False)
    value = Column(JSON, nullable=True)

    __table_args__ = (Index("ix_post_meta_post_id", "post_id"),)


class PostORM(Base):
    """Modèle ORM des posts et de leurs versions (`type = post_version`).

    L'unicité de `slug_path` est portée par la base; les versions reçoivent un
    chemin aléatoire et ne peuvent donc pas entrer en collision.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(32), nullable=False, default="post")
    name = Column(String(NAME_MAX_LEN), nullable=False)
    slug = Column(String(SLUG_MAX_LEN), nullable=False)
    slug_path = Column(String(SLUG_PATH_MAX_LEN), nullable=False)
    status = Column(String(16), nullable=False, default="draft")
    published_at = Column(DateTime(timezone=True), nullable=True)
    published_from = Column(DateTime(timezone=True), nullable=True)
    published_until = Column(DateTime(timezone=True), nullable=True)
    parent_id = Column(Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    content_type_id = Column(Integer, ForeignKey("content_types.id"), nullable=True)
    author_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    meta = relationship(
        PostMetaORM,
        order_by=PostMetaORM.id,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tags = relationship(TagORM, secondary=post_tags, lazy="selectin")

    __table_args__ = (
        UniqueConstraint("slug_path", name="uq_posts_slug_path"),
        Index("ix_posts_parent_id_type", "parent_id", "type"),
    )
