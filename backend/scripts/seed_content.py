"""
Script d'amorçage d'une arborescence de contenus.

Ce script lit un fichier JSON décrivant un arbre de posts et le crée via
`PostService` (chemins dérivés des parents, contenu structuré, publication
optionnelle).

Format attendu du JSON: liste de nœuds
{"name": str, "slug": str, "type": "folder|page|fragment|post",
 "content": {...}, "publish": bool, "children": [...]}
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

# Permet l'exécution du script en direct (python backend/scripts/seed_content.py)
SYS_ROOT = Path(__file__).resolve().parents[2]
if str(SYS_ROOT) not in sys.path:
    sys.path.append(str(SYS_ROOT))

from backend.core.constants import DEFAULT_DATABASE_URL  # noqa: E402
from backend.domain.entities import Author  # noqa: E402
from backend.domain.services import PostService  # noqa: E402
from backend.infra.repo.db import get_engine  # noqa: E402
from backend.infra.repo.models import Base  # noqa: E402

SEED_AUTHOR = Author(id="seed")


def _load_nodes(path: str) -> list[dict[str, Any]]:
    """Charge les nœuds depuis `path`; liste vide si le fichier n'existe pas."""
    if not os.path.exists(path):
        return []
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [n for n in raw if isinstance(n, dict)] if isinstance(raw, list) else []


def seed_tree(
    service: PostService,
    nodes: list[dict[str, Any]],
    parent_id: int | None = None,
    author: Author = SEED_AUTHOR,
) -> list[int]:
    """Crée récursivement `nodes` sous `parent_id` et retourne les ids créés."""
    created: list[int] = []
    for node in nodes:
        post = service.create_post(
            name=node["name"],
            slug=node["slug"],
            author=author,
            type=node.get("type", "page"),
            parent_id=parent_id,
        )
        created.append(post["id"])
        if node.get("content"):
            service.update_content(post["id"], node["content"], author)
        if node.get("publish"):
            service.publish([post["id"]])
        created += seed_tree(service, node.get("children") or [], post["id"], author)
    return created


def main() -> None:
    """Point d'entrée: lit le JSON et crée l'arborescence."""
    parser = argparse.ArgumentParser(description="Amorçage d'une arborescence de posts")
    parser.add_argument("--path", type=str, required=True, help="Fichier JSON des nœuds")
    parser.add_argument(
        "--database-url",
        type=str,
        default=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        help="URL SQLAlchemy de la base cible",
    )
    args = parser.parse_args()

    nodes = _load_nodes(args.path)
    if not nodes:
        print(f"[seed] aucun nœud chargé depuis {args.path}")
        return

    engine = get_engine(args.database_url)
    Base.metadata.create_all(engine)
    ids = seed_tree(PostService(engine), nodes)
    print(f"[seed] créés: {len(ids)} posts depuis {args.path}")


if __name__ == "__main__":
    main()
