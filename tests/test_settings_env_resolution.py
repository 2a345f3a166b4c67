"""
Tests pour la résolution des variables d'environnement.

Ce module teste le chargement et la résolution des variables d'environnement à partir de fichiers
.env personnalisés dans les settings.
"""

from __future__ import annotations

import importlib
from pathlib import Path


def _reload_settings():
    settings_mod = importlib.import_module("backend.core.settings")
    return importlib.reload(settings_mod)


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """
    Teste que les settings lisent correctement les fichiers d'environnement.

    Vérifie que les variables définies dans un fichier .env désigné par ENV_FILE sont
    correctement chargées et appliquées aux settings.
    """
    env = tmp_path / ".env.custom"
    env.write_text("LOG_LEVEL=DEBUG\nDB_AUTO_CREATE=false\n", encoding="utf-8")
    monkeypatch.setenv("ENV_FILE", str(env))

    s = _reload_settings().get_settings()
    assert s.LOG_LEVEL == "DEBUG"
    assert s.DB_AUTO_CREATE is False


def test_settings_prefers_app_env_file(tmp_path: Path, monkeypatch) -> None:
    """Sans ENV_FILE, `.env.{APP_ENV}` l'emporte sur `.env`."""
    (tmp_path / ".env").write_text("APP_PORT=1111\n", encoding="utf-8")
    (tmp_path / ".env.staging").write_text("APP_PORT=2222\n", encoding="utf-8")
    monkeypatch.delenv("ENV_FILE", raising=False)
    monkeypatch.delenv("APP_PORT", raising=False)
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.chdir(tmp_path)

    s = _reload_settings().get_settings()
    assert s.APP_PORT == 2222


def test_environment_overrides_env_file(tmp_path: Path, monkeypatch) -> None:
    env = tmp_path / ".env.custom"
    env.write_text("JWT_ALG=HS512\n", encoding="utf-8")
    monkeypatch.setenv("ENV_FILE", str(env))
    monkeypatch.setenv("JWT_ALG", "HS384")

    s = _reload_settings().get_settings()
    assert s.JWT_ALG == "HS384"
