# core/errors.py
from typing import List


class CatalogError(Exception):
    """Base class for catalog importer errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class BackendError(CatalogError):
    """A backend collaborator call failed."""


class LoadError(CatalogError):
    """Catalog fetch failed."""


class DetailError(CatalogError):
    """Per-item detail fetch failed."""


class ImportBatchError(CatalogError):
    """Backend import call failed."""


class ValidationError(CatalogError):
    """One or more selected items violate the import constraints."""

    def __init__(self, message: str, offending: List[str]):
        super().__init__(message)
        self.offending = list(offending)


def describe_error(exc: BaseException, fallback: str) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or fallback
