"""
Lecture et écriture du contenu structuré des posts.

Le contenu est stocké à plat dans les meta (`content.hero.title = "..."`). Ce
module reconstruit l'arbre, repère les marqueurs de référence (`$post`,
`$asset`) et fournit les accès par chemin pointé utilisés pour l'injection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from backend.core.constants import (
    ASSET_REF_MARKER,
    CONTENT_META_PREFIX,
    META_KEY_SEPARATOR,
    POST_REF_MARKER,
)

_MISSING = object()


@dataclass
class ParsedContent:
    """Arbre de contenu et références indexées par chemin pointé."""

    content: dict[str, Any] = field(default_factory=dict)
    references: dict[str, Any] = field(default_factory=dict)
    assets: dict[str, Any] = field(default_factory=dict)


def flatten(data: Any, prefix: str = "") -> dict[str, Any]:
    """Aplatit un dict/list imbriqué en clés pointées (les index de liste deviennent des segments)."""
    flat: dict[str, Any] = {}
    if isinstance(data, dict):
        items: Iterable = data.items()
    elif isinstance(data, list):
        items = enumerate(data)
    else:
        if prefix:
            flat[prefix] = data
        return flat
    for key, value in items:
        path = f"{prefix}{META_KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, dict | list):
            flat.update(flatten(value, path))
        elif value is not None:
            flat[path] = value
    return flat


def _listify(node: Any) -> Any:
    # dict indexé 0..n-1 => liste
    if isinstance(node, dict):
        node = {k: _listify(v) for k, v in node.items()}
        keys = list(node.keys())
        if keys and all(k.isdigit() for k in keys):
            indexes = sorted(int(k) for k in keys)
            if indexes == list(range(len(indexes))):
                return [node[str(i)] for i in indexes]
        return node
    return node


def unflatten(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Reconstruit un arbre depuis des paires (clé pointée, valeur)."""
    root: dict[str, Any] = {}
    for key, value in pairs:
        parts = key.split(META_KEY_SEPARATOR)
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
    return {k: _listify(v) for k, v in root.items()}


def _step(node: Any, part: str) -> Any:
    if isinstance(node, dict):
        return node.get(part, _MISSING)
    if isinstance(node, list) and part.isdigit() and int(part) < len(node):
        return node[int(part)]
    return _MISSING


def get_path(tree: Any, path: str, default: Any = None) -> Any:
    """Valeur au chemin pointé `path`, ou `default`."""
    node = tree
    for part in path.split(META_KEY_SEPARATOR):
        node = _step(node, part)
        if node is _MISSING:
            return default
    return node


def set_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """Affecte `value` au chemin pointé `path` en créant les nœuds manquants."""
    parts = path.split(META_KEY_SEPARATOR)
    node: Any = tree
    for part in parts[:-1]:
        child = _step(node, part)
        if not isinstance(child, dict | list):
            child = {}
            if isinstance(node, list):
                node[int(part)] = child
            else:
                node[part] = child
        node = child
    last = parts[-1]
    if isinstance(node, list) and last.isdigit() and int(last) < len(node):
        node[int(last)] = value
    elif isinstance(node, dict):
        node[last] = value


def normalize_ref(value: Any) -> Any:
    """Identifiant de référence normalisé (entier si possible), None si vide."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _collect(node: Any, path: str, parsed: ParsedContent) -> None:
    if isinstance(node, dict):
        # un nœud marqueur est une feuille: ses enfants ne sont pas parcourus
        if POST_REF_MARKER in node:
            parsed.references[path] = normalize_ref(node[POST_REF_MARKER])
            return
        if ASSET_REF_MARKER in node:
            parsed.assets[path] = normalize_ref(node[ASSET_REF_MARKER])
            return
        children: Iterable = node.items()
    elif isinstance(node, list):
        children = enumerate(node)
    else:
        return
    for key, child in children:
        _collect(child, f"{path}{META_KEY_SEPARATOR}{key}" if path else str(key), parsed)


def content_pairs(meta: Iterable[Any]) -> list[tuple[str, Any]]:
    """Paires (clé relative, valeur) des meta de contenu."""
    prefix = CONTENT_META_PREFIX + META_KEY_SEPARATOR
    return [(m.key[len(prefix) :], m.value) for m in meta if m.key.startswith(prefix)]


def is_content_key(key: str) -> bool:
    return key == CONTENT_META_PREFIX or key.startswith(CONTENT_META_PREFIX + META_KEY_SEPARATOR)


def parse_content(post: Any) -> ParsedContent:
    """Extrait l'arbre `content` et les références (posts et assets) d'un post."""
    parsed = ParsedContent(content=unflatten(content_pairs(post.meta or [])))
    _collect(parsed.content, "", parsed)
    return parsed
