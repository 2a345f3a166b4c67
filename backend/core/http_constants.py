"""Codes HTTP utilisés par la couche API.

Les erreurs métier sont toutes des 400; l'authentification manquante ou
invalide répond 401.
"""

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_SERVER_ERROR = 500
