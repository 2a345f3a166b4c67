"""Tests des versions (instantanés) de posts: création, liste, restauration, suppression."""

import pytest

from backend.domain.errors import InvalidPost, InvalidPostType, InvalidPostVersion
from tests.fakes import build_tree, seed_tags


def test_each_edit_creates_exactly_one_version(service, author):
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]

    service.update_post(post_id, author, name="Home v2")
    assert service.list_versions(post_id, count=True) == {"count": 1}

    service.update_content(post_id, {"title": "Hello"}, author)
    assert service.list_versions(post_id, count=True) == {"count": 2}


def test_version_keeps_previous_state(service, author):
    """La version porte l'état d'avant l'édition, pas le nouveau."""
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]
    service.update_content(post_id, {"title": "v1"}, author)
    service.update_content(post_id, {"title": "v2"}, author)

    versions = service.list_versions(post_id)

    assert [v["meta"] for v in versions] == [{"content": {"title": "v1"}}, {}]
    assert all(v["type"] == "post_version" for v in versions)
    assert all(v["parent_id"] == post_id for v in versions)
    assert service.get_post(post_id)["meta"] == {"content": {"title": "v2"}}


def test_versions_are_not_listed_as_posts(service, author):
    ids = build_tree(service, author, ["home"])
    service.update_post(ids["home"], author, name="Other")
    assert [p["id"] for p in service.list_posts()] == [ids["home"]]


def test_get_post_with_version_id(service, author):
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]
    service.update_content(post_id, {"title": "old"}, author)
    service.update_content(post_id, {"title": "new"}, author)
    version_id = service.list_versions(post_id)[0]["id"]

    data = service.get_post(post_id, version_id=version_id)

    assert data["id"] == post_id
    assert data["version_id"] == version_id
    assert data["meta"] == {"content": {"title": "old"}}


def test_get_post_with_foreign_version_fails(service, author):
    ids = build_tree(service, author, ["a", "b"])
    service.update_post(ids["a"], author, name="A2")
    version_id = service.list_versions(ids["a"])[0]["id"]
    with pytest.raises(InvalidPostVersion):
        service.get_post(ids["b"], version_id=version_id)


def test_restore_snapshots_current_state_first(service, author):
    """Restaurer crée une version de l'état courant puis recopie la version."""
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]
    service.update_content(post_id, {"title": "v1"}, author)
    service.update_content(post_id, {"title": "v2"}, author)
    v1 = service.list_versions(post_id)[0]

    restored = service.restore_version(post_id, v1["id"], author)

    assert restored["id"] == post_id
    assert restored["meta"] == {"content": {"title": "v1"}}
    assert service.list_versions(post_id, count=True) == {"count": 3}
    latest = service.list_versions(post_id)[0]
    assert latest["meta"] == {"content": {"title": "v2"}}


def test_restore_errors(service, author):
    ids = build_tree(service, author, ["home"])
    with pytest.raises(InvalidPost):
        service.restore_version(9999, 1, author)
    with pytest.raises(InvalidPostVersion):
        service.restore_version(ids["home"], 9999, author)


def test_editing_a_version_is_rejected(service, author):
    ids = build_tree(service, author, ["home"])
    service.update_post(ids["home"], author, name="X")
    version_id = service.list_versions(ids["home"])[0]["id"]
    with pytest.raises(InvalidPostType):
        service.update_post(version_id, author, name="Y")


def test_delete_versions_ignores_live_posts(service, author):
    ids = build_tree(service, author, ["home", "other"])
    post_id = ids["home"]
    service.update_post(post_id, author, name="H2")
    service.update_post(post_id, author, name="H3")
    version_ids = [v["id"] for v in service.list_versions(post_id)]

    deleted = service.delete_versions([version_ids[0], ids["other"]], post_id=post_id)

    assert deleted == 1
    assert service.list_versions(post_id, count=True) == {"count": 1}
    assert {p["id"] for p in service.list_posts()} == {post_id, ids["other"]}


def test_delete_post_removes_its_versions(service, author):
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]
    service.update_post(post_id, author, name="H2")

    assert service.delete_posts([post_id]) == 1
    assert service.list_versions(post_id, count=True) == {"count": 0}


def test_restore_brings_back_name_and_tags(service, author, engine):
    """La restauration recopie aussi le nom et les tags de la version."""
    ids = build_tree(service, author, ["home"])
    post_id = ids["home"]
    tags = seed_tags(engine, "red", "blue")
    service.update_post(post_id, author, name="V1", tags=[tags["red"]])
    service.update_post(post_id, author, name="V2", tags=[tags["blue"]])
    v1 = service.list_versions(post_id)[0]
    assert v1["name"] == "V1"
    assert v1["tags"] == [{"id": tags["red"], "name": "red"}]

    restored = service.restore_version(post_id, v1["id"], author)

    assert restored["name"] == "V1"
    assert restored["tags"] == [{"id": tags["red"], "name": "red"}]
    latest = service.list_versions(post_id)[0]
    assert latest["name"] == "V2"
    assert latest["tags"] == [{"id": tags["blue"], "name": "blue"}]
