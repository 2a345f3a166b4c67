"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports backend et fournit une
base SQLite fichier par test (les compilations lisent depuis plusieurs threads).
"""

import os
import sys
import tempfile

import pytest

# Ensure project root is on sys.path so that
# imports like `from backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Base du conteneur applicatif isolée du `./cms.db` de développement
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{os.path.join(tempfile.mkdtemp(prefix='cms-tests-'), 'cms.db')}",
)

from backend.domain.entities import Author  # noqa: E402
from backend.domain.services import PostService  # noqa: E402
from backend.infra.repo.db import get_engine  # noqa: E402
from backend.infra.repo.models import Base  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """Moteur SQLite fichier avec le schéma créé."""
    eng = get_engine(f"sqlite+pysqlite:///{tmp_path / 'cms.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def service(engine) -> PostService:
    return PostService(engine)


@pytest.fixture
def author() -> Author:
    return Author(id="editor-1", email="editor@test.io")
