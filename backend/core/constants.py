"""Constantes métier et constantes de tests.

Ce module regroupe les valeurs fixes du moteur de contenus (profondeur de
compilation, types autorisés) ainsi que les constantes utilisées par les tests
pour éviter les valeurs magiques.
"""

# Profondeur maximale d'imbrication des références de contenu
MAX_REFERENCE_DEBT = 3

# Préfixe des clés meta portant le contenu structuré
CONTENT_META_PREFIX = "content"

# Marqueurs de référence dans l'arbre de contenu
POST_REF_MARKER = "$post"
ASSET_REF_MARKER = "$asset"

# Base locale par défaut (fichier SQLite)
DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./cms.db"

# Séparateurs
SLUG_SEPARATOR = "/"
META_KEY_SEPARATOR = "."

# Types de contenu rattachables à un post
ALLOWED_CONTENT_TYPE_KINDS = ("post", "page", "fragment")

# Types recopiés lors d'une copie récursive
COPYABLE_POST_TYPES = ("folder", "page", "fragment")

# Longueurs de colonnes
SLUG_MAX_LEN = 256
NAME_MAX_LEN = 256
SLUG_PATH_MAX_LEN = 2048

# Constantes de tests (HTTP)
TEST_HTTP_STATUS_OK = 200
TEST_HTTP_STATUS_BAD_REQUEST = 400
TEST_HTTP_STATUS_UNAUTHORIZED = 401
TEST_HTTP_STATUS_UNPROCESSABLE = 422
