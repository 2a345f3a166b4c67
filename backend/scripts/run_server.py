"""
Script de serveur de développement.

Lance l'application FastAPI avec les paramètres d'hôte/port issus des settings.
"""

import uvicorn

from backend.app.main import app
from backend.core.container import container


def main():
    """Point d'entrée principal du serveur."""
    settings = container.settings
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, reload=False)


if __name__ == "__main__":
    main()
