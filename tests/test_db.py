"""Tests de la couche SQLAlchemy: isolation des unités de travail et schéma."""

import pytest
from sqlalchemy import inspect, select

from backend.core.constants import DEFAULT_DATABASE_URL
from backend.core.settings import Settings
from backend.infra.repo.db import get_engine, session_scope
from backend.infra.repo.models import PostORM


def test_default_database_is_a_local_file(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    engine = get_engine()
    assert engine.url.database == "./cms.db"
    assert Settings.model_fields["DATABASE_URL"].default == DEFAULT_DATABASE_URL
    engine.dispose()


def test_sessions_use_distinct_connections(engine):
    with engine.connect() as first, engine.connect() as second:
        assert first.connection.dbapi_connection is not second.connection.dbapi_connection


def test_rollback_does_not_discard_other_unit_of_work(service, engine):
    """L'annulation d'une session n'emporte pas les écritures d'une autre."""
    with session_scope(engine) as first:
        first.add(PostORM(name="A", slug="a", slug_path="a", type="folder", status="draft"))
        first.flush()
        with pytest.raises(RuntimeError):
            with session_scope(engine) as second:
                second.execute(select(PostORM.id)).all()
                raise RuntimeError("boom")

    assert [p["slug_path"] for p in service.list_posts()] == ["a"]


def test_create_all_declares_migration_indexes(engine):
    inspector = inspect(engine)
    assert "ix_posts_parent_id_type" in {i["name"] for i in inspector.get_indexes("posts")}
    assert "ix_post_meta_post_id" in {i["name"] for i in inspector.get_indexes("post_meta")}
