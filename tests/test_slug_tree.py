"""
Tests pour l'arborescence des chemins de slugs.

Couvre le calcul des chemins, le renommage avec réécriture du sous-arbre (et
son rollback sur collision), la copie récursive et la recherche des
descendants.
"""

from __future__ import annotations

import pytest

from backend.domain.errors import DuplicateSlug, InvalidParent, InvalidSlug, InvalidSource
from backend.domain.slug_tree import (
    SlugTree,
    compute_child_path,
    parent_path_of,
    rebase_path,
)
from backend.infra.repo.db import session_scope
from backend.infra.repo.post_repo import PostRepo
from tests.fakes import build_tree, seed_tags


def _paths(service) -> list[str]:
    return sorted(p["slug_path"] for p in service.list_posts())


def test_compute_child_path() -> None:
    """Concatène le chemin parent et le slug; racine sans parent."""
    assert compute_child_path(None, "a") == "a"
    assert compute_child_path("", "a") == "a"
    assert compute_child_path("a/b", "c") == "a/b/c"


@pytest.mark.parametrize("slug", ["", "a/b"])
def test_compute_child_path_rejects_invalid_slug(slug: str) -> None:
    with pytest.raises(InvalidSlug):
        compute_child_path("root", slug)


def test_parent_path_and_rebase() -> None:
    assert parent_path_of("a/b/c") == "a/b"
    assert parent_path_of("a") is None
    assert rebase_path("a/b/c", "a", "z") == "z/b/c"
    assert rebase_path("a", "a", "x/y") == "x/y"
    with pytest.raises(ValueError):
        rebase_path("ab/c", "a", "z")


def test_created_paths_follow_parent(service, author) -> None:
    """Le chemin d'un post vaut celui du parent plus son slug."""
    ids = build_tree(service, author, ["a", "a/b", "a/b/c"])
    post = service.get_post(ids["a/b/c"])
    assert post["slug_path"] == "a/b/c"
    assert post["parent_id"] == ids["a/b"]
    assert service.get_post(ids["a"])["slug_path"] == "a"


def test_rename_rewrites_subtree_only(service, author) -> None:
    """Renommer `a` réécrit `a` et `a/...` mais pas `ab`."""
    ids = build_tree(service, author, ["a", "a/b", "a/b/c", "ab", "ab/x"])

    service.update_post(ids["a"], author, slug="new")

    assert _paths(service) == ["ab", "ab/x", "new", "new/b", "new/b/c"]
    renamed = service.get_post(ids["a"])
    assert renamed["slug"] == "new"
    assert service.get_post(ids["a/b/c"])["slug_path"] == "new/b/c"


def test_rename_child_uses_parent_path(service, author) -> None:
    ids = build_tree(service, author, ["a", "a/b", "a/b/c"])
    service.update_post(ids["a/b"], author, slug="bb")
    assert _paths(service) == ["a", "a/bb", "a/bb/c"]


def test_rename_collision_rolls_back(service, author) -> None:
    """Une collision lève DuplicateSlug et ne laisse ni chemin modifié ni version."""
    ids = build_tree(service, author, ["a", "a/b", "c"])
    before = _paths(service)

    with pytest.raises(DuplicateSlug):
        service.update_post(ids["a"], author, slug="c")

    assert _paths(service) == before
    assert service.list_versions(ids["a"], count=True) == {"count": 0}


def test_copy_recursive_links_parents(service, author) -> None:
    """Copier `/a` (avec `/a/b`, `/a/c`) vers `z` produit `/z`, `/z/b`, `/z/c`."""
    ids = build_tree(service, author, ["a", "a/b", "a/c", "a/b/d"])
    service.update_content(ids["a/b"], {"title": "B"}, author)

    copies = service.copy_post(ids["a"], "z", "Zed", author, recursive=True)

    by_path = {c["slug_path"]: c for c in copies}
    assert [c["slug_path"] for c in copies] == ["z", "z/b", "z/b/d", "z/c"]
    assert by_path["z"]["name"] == "Zed"
    assert by_path["z"]["parent_id"] is None
    assert by_path["z/b"]["parent_id"] == by_path["z"]["id"]
    assert by_path["z/c"]["parent_id"] == by_path["z"]["id"]
    assert by_path["z/b/d"]["parent_id"] == by_path["z/b"]["id"]
    assert by_path["z/b"]["name"] == "B"
    assert service.get_post(by_path["z/b"]["id"])["meta"] == {"content": {"title": "B"}}
    # la source est intacte
    assert service.get_post(ids["a/b"])["slug_path"] == "a/b"


def test_copy_under_destination_parent(service, author) -> None:
    ids = build_tree(service, author, ["a", "a/b", "dest"])
    copies = service.copy_post(ids["a"], "copy", "Copy", author, parent_id=ids["dest"], recursive=True)
    assert [c["slug_path"] for c in copies] == ["dest/copy", "dest/copy/b"]
    assert copies[0]["parent_id"] == ids["dest"]


def test_copy_non_recursive_copies_root_only(service, author) -> None:
    ids = build_tree(service, author, ["a", "a/b"])
    copies = service.copy_post(ids["a"], "z", "Z", author)
    assert [c["slug_path"] for c in copies] == ["z"]


def test_copy_skips_descendants_of_excluded_types(service, author) -> None:
    """Un descendant dont l'ancêtre n'est pas copiable n'est pas recréé orphelin."""
    ids = build_tree(service, author, ["a"])
    post = service.create_post("P", "p", author, type="post", parent_id=ids["a"])
    service.create_post("Q", "q", author, type="page", parent_id=post["id"])

    copies = service.copy_post(ids["a"], "z", "Z", author, recursive=True)

    assert [c["slug_path"] for c in copies] == ["z"]


def test_copy_errors(service, author) -> None:
    ids = build_tree(service, author, ["a", "a/b", "z"])
    with pytest.raises(InvalidParent):
        service.copy_post(ids["a"], "x", "X", author, parent_id=9999)
    with pytest.raises(InvalidSource):
        service.copy_post(9999, "x", "X", author)


def test_copy_collision_rolls_back_whole_subtree(service, author) -> None:
    """Une collision sur un descendant annule aussi la racine déjà créée."""
    ids = build_tree(service, author, ["a", "a/b", "z", "z/b"])
    ids_before = {p["id"] for p in service.list_posts()}
    service.delete_posts([ids["z"]])
    # `z/b` existe toujours: la copie de `a/b` vers `z/b` entre en collision
    with pytest.raises(DuplicateSlug):
        service.copy_post(ids["a"], "z", "Z", author, recursive=True)
    assert {p["id"] for p in service.list_posts()} == ids_before - {ids["z"]}


def test_find_descendants(service, author, engine) -> None:
    build_tree(service, author, ["a", "a/b", "a/b/c", "ab"])
    with session_scope(engine) as session:
        repo = PostRepo(session)
        root = repo.get_by_slug_path("a")
        paths = [p.slug_path for p in SlugTree(repo).find_descendants(root)]
    assert paths == ["a", "a/b", "a/b/c"]


def test_copy_carries_tags(service, author, engine):
    ids = build_tree(service, author, ["a", "a/b"])
    tags = seed_tags(engine, "red")
    service.update_post(ids["a/b"], author, tags=[tags["red"]])

    copies = service.copy_post(ids["a"], "z", "Z", author, recursive=True)

    by_path = {c["slug_path"]: c for c in copies}
    assert by_path["z/b"]["tags"] == [{"id": tags["red"], "name": "red"}]
    assert by_path["z"]["tags"] == []


def test_rename_after_parent_deletion_keeps_position(service, author):
    """Le parent supprimé ne fait pas remonter le sous-arbre à la racine."""
    ids = build_tree(service, author, ["a", "a/b", "a/b/c"])
    service.delete_posts([ids["a"]])

    service.update_post(ids["a/b"], author, slug="bb")

    assert _paths(service) == ["a/bb", "a/bb/c"]
