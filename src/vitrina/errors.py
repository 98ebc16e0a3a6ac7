"""
Excepciones del sistema.

El motor de descubrimiento absorbe los errores del store y los expone
como valores (ver StoreSnapshot); solo el toggle de favoritos propaga.
"""

from typing import Optional


class VitrinaError(Exception):
    """Error base de vitrina."""


class StoreError(VitrinaError):
    """El store no respondió (red, permisos, etc.)."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Error de store en '{operation}'{detail}")


class FavoriteError(VitrinaError):
    """No se pudo actualizar el favorito."""


class AuthenticationRequired(VitrinaError):
    """La operación requiere un usuario logueado."""
