"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et les compteurs métier du moteur de
contenus (versions, publication, réécritures de chemins, compilation).
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Versions et éditions
POST_VERSIONS_CREATED = Counter(
    "post_versions_created_total",
    "Post version snapshots persisted before an edit",
)
SLUG_PATH_REWRITES = Counter(
    "slug_path_rewrites_total",
    "Rows whose slug_path was rewritten by a rename",
)
POST_PUBLISH_UPDATES = Counter(
    "post_publish_updates_total",
    "Rows updated by bulk publish/unpublish",
    ["action"],
)

# Compilation
COMPILE_REQUESTS = Counter(
    "content_compile_total",
    "Top-level content compilations",
    ["outcome"],
)
COMPILE_TRUNCATED = Counter(
    "content_compile_truncated_total",
    "Content references left unresolved at the recursion ceiling",
)


def route_label(request: Request) -> str:
    """Gabarit de route (`/posts/{post_id}`) plutôt que le chemin brut.

    Évite une cardinalité non bornée des labels sur `/content/...`.
    """
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par gabarit
    de route pour l'exposition Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
