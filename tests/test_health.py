"""Tests pour l'endpoint de santé de l'application."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app.main import app
from backend.core.container import container
from backend.core.http_constants import HTTP_OK


def test_health():
    """Teste que l'endpoint de santé retourne un statut OK avec le backend de stockage."""
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "ok"
    assert body["database"] is True
    assert body["storage"] == "sqlite"


def test_health_degraded_when_database_down(monkeypatch):
    """Une base injoignable dégrade le statut sans lever d'erreur."""
    monkeypatch.setattr(container, "check_database", lambda: False)
    r = TestClient(app).get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "degraded"


def test_check_database_logs_and_reports_failure():
    """`check_database` renvoie False quand la connexion échoue."""
    with patch.object(container, "engine") as engine:
        engine.connect.side_effect = OSError("down")
        assert container.check_database() is False
