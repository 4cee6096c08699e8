from . import http
from . import sqlite

BACKENDS = {
    "http": http.HttpCatalogBackend,
    "sqlite": sqlite.SqliteCatalogBackend,
}
