"""
Tests de la visibilité effective et des transitions de publication en masse.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from backend.domain.errors import InvalidIds
from backend.domain.publishing import as_utc, is_effectively_visible
from tests.fakes import build_tree, record

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
HOUR = timedelta(hours=1)


def test_as_utc_normalizes_naive_and_aware():
    naive = datetime(2026, 1, 1, 10, 0)
    assert as_utc(naive) == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
    paris = datetime(2026, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=1)))
    assert as_utc(paris) == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
    assert as_utc(paris).tzinfo == UTC
    assert as_utc(None) is None


@pytest.mark.parametrize(
    "status,start,end,expected",
    [
        ("published", None, None, True),
        ("draft", None, None, False),
        ("published", NOW - HOUR, NOW + HOUR, True),
        ("published", NOW + HOUR, None, False),
        ("published", None, NOW - HOUR, False),
        ("published", NOW, NOW, True),
        ("draft", NOW - HOUR, NOW + HOUR, False),
    ],
)
def test_is_effectively_visible(status, start, end, expected):
    post = record(1, "a", status=status, published_from=start, published_until=end)
    assert is_effectively_visible(post, NOW) is expected


def test_naive_window_is_read_as_utc():
    """Les datetimes naïfs relus depuis SQLite sont interprétés en UTC."""
    post = record(1, "a", published_from=datetime(2026, 6, 1, 13, 0))
    assert is_effectively_visible(post, NOW) is False
    assert is_effectively_visible(post, NOW + 2 * HOUR) is True


def test_none_is_never_visible():
    assert is_effectively_visible(None, NOW) is False


def test_publish_sets_status_and_window(service, author):
    ids = build_tree(service, author, ["a", "b"])
    start = datetime(2026, 1, 1, tzinfo=UTC)

    posts = service.publish([ids["a"]], published_from=start)

    assert [p["id"] for p in posts] == [ids["a"]]
    assert posts[0]["status"] == "published"
    assert posts[0]["published_at"] is not None
    assert posts[0]["published_from"] == start.isoformat()
    assert posts[0]["published_until"] is None
    assert service.get_post(ids["b"])["status"] == "draft"


def test_publish_recursive_cascades_to_descendants(service, author):
    ids = build_tree(service, author, ["a", "a/b", "a/b/c", "ab"])

    service.publish([ids["a"]], recursive=True)

    statuses = {p["slug_path"]: p["status"] for p in service.list_posts()}
    assert statuses == {"a": "published", "a/b": "published", "a/b/c": "published", "ab": "draft"}


def test_unpublish_clears_publish_fields(service, author):
    ids = build_tree(service, author, ["a", "a/b"])
    service.publish([ids["a"]], recursive=True, published_until=NOW)

    posts = service.publish([ids["a"]], publish=False)

    assert posts[0]["status"] == "draft"
    assert posts[0]["published_at"] is None
    assert posts[0]["published_until"] is None
    # sans cascade, l'enfant reste publié
    assert service.get_post(ids["a/b"])["status"] == "published"


def test_unpublish_recursive(service, author):
    ids = build_tree(service, author, ["a", "a/b"])
    service.publish([ids["a"]], recursive=True)
    service.publish([ids["a"]], publish=False, recursive=True)
    assert {p["status"] for p in service.list_posts()} == {"draft"}


def test_publish_unknown_ids_fails(service, author):
    build_tree(service, author, ["a"])
    with pytest.raises(InvalidIds):
        service.publish([9999])


def test_publish_ignores_versions(service, author):
    ids = build_tree(service, author, ["a"])
    service.update_post(ids["a"], author, name="A2")
    version_id = service.list_versions(ids["a"])[0]["id"]

    with pytest.raises(InvalidIds):
        service.publish([version_id])
