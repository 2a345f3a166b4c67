"""
Erreurs métier du moteur de contenus.

Toutes les erreurs sont de classe "bad request": récupérables côté client et
exposées sous la forme d'un code unique, sans détail interne.
"""

from __future__ import annotations


class DomainError(Exception):
    """Erreur métier portant un code stable."""

    code = "bad_request"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidParent(DomainError):
    code = "invalid_parent"


class InvalidSource(DomainError):
    code = "invalid_source"


class InvalidPost(DomainError):
    code = "invalid_post"


class InvalidPostVersion(DomainError):
    code = "invalid_post_version"


class InvalidPostType(DomainError):
    code = "invalid_post_type"


class InvalidIds(DomainError):
    code = "invalid_ids"


class InvalidContentType(DomainError):
    code = "invalid_content_type"


class InvalidSlug(DomainError):
    code = "invalid_slug"


class DuplicateSlug(DomainError):
    """Collision de `slug_path` détectée par la contrainte d'unicité du store."""

    code = "duplicate_slug"
