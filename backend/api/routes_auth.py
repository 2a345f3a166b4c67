"""
Dépendance d'authentification pour l'API.

Extrait l'auteur courant du jeton `Authorization: Bearer ...`. Aucune règle
d'autorisation n'est appliquée ici: seule l'identité est transmise au cœur.
"""

from fastapi import Header, HTTPException

from backend.core.container import container
from backend.core.http_constants import HTTP_UNAUTHORIZED
from backend.domain.auth import author_from_token
from backend.domain.entities import Author


def get_current_user(authorization: str = Header(None)) -> Author:
    """Extrait et valide l'auteur courant à partir du token d'autorisation."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="missing_token")
    token = authorization.split(" ", 1)[1]
    author = author_from_token(
        token, container.settings.JWT_SECRET, container.settings.JWT_ALG
    )
    if author is None:
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="invalid_token")
    return author
