"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQLAlchemy, service des
posts) et expose un singleton `container` utilisé par le reste de l'application.
"""

import structlog
from sqlalchemy import text

from backend.core.settings import get_settings
from backend.domain.services import PostService
from backend.infra.repo.db import get_engine
from backend.infra.repo.models import Base


class Container:
    def __init__(self, database_url: str | None = None):
        self.settings = get_settings()
        self.engine = get_engine(database_url or self.settings.DATABASE_URL)
        self.storage_backend = self.engine.dialect.name
        if self.settings.DB_AUTO_CREATE:
            Base.metadata.create_all(self.engine)
        self.post_service = PostService(self.engine)

    def check_database(self) -> bool:
        """Vérifie que la base répond (utilisé par `/health`)."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as err:
            structlog.get_logger(__name__).warning("database_unavailable", error=type(err).__name__)
            return False
        return True


container = Container()
