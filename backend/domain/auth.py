"""
Identité de l'auteur à partir de jetons JWT.

Le moteur de contenus ne prend aucune décision d'autorisation: il se contente
d'extraire une identité opaque (`Author`) du jeton présenté.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from pydantic import BaseModel, ValidationError

from backend.domain.entities import Author


class TokenData(BaseModel):
    """Données contenues dans un token JWT."""

    sub: str
    email: str | None = None


def create_access_token(
    secret: str, alg: str, expires_min: int, payload: dict[str, Any]
) -> str:
    """Crée un token JWT d'accès avec expiration."""
    to_encode = payload.copy()
    expire = datetime.now(UTC) + timedelta(minutes=expires_min)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str) -> TokenData | None:
    """Décode et valide un token JWT."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg])
        return TokenData(**data)
    except (InvalidTokenError, ValidationError):
        return None


def author_from_token(token: str, secret: str, alg: str) -> Author | None:
    """Auteur opaque porté par le jeton, ou None si le jeton est invalide."""
    data = decode_token(token, secret, alg)
    if data is None:
        return None
    return Author(id=data.sub, email=data.email)
