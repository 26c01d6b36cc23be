"""
Taxonomía de errores del dashboard.

Cada error se genera en la frontera HTTP (ApiClient) o en validaciones locales
de formularios, y se maneja en la frontera de cada pantalla:

- AuthError: credencial ausente, inválida o expirada → redirección, sin reintento
- PermissionError: credencial válida con rol incorrecto → redirección, sin reintento
- MembershipAccessError: el plan del usuario no da acceso al recurso → mensaje visible
- TransientError: red caída o 5xx → control de reintento, caché preservada
- ValidationError: otros 4xx o formulario inválido → mensaje junto al campo
- NotFoundError: la entidad ya no existe en el servidor
- SchemaError: la respuesta no cumple el esquema esperado
"""

from typing import Any, List, Optional


class DashboardError(Exception):
    """Base de todos los errores del dashboard."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(DashboardError):
    """Raised when the credential is missing, invalid or expired."""
    pass


class PermissionError(DashboardError):
    """Raised when the credential is valid but the role lacks access."""
    pass


class MembershipAccessError(PermissionError):
    """El plan de membresía actual no permite acceder al recurso."""

    def __init__(
        self,
        message: str,
        required_plans: Optional[List[str]] = None,
        current_plan: str = "None",
        status_code: Optional[int] = 403
    ):
        super().__init__(message, status_code)
        self.required_plans = required_plans or []
        self.current_plan = current_plan


class TransientError(DashboardError):
    """Raised on network errors, timeouts and 5xx responses."""
    pass


class ValidationError(DashboardError):
    """Raised when the server rejects the input or a form fails local validation."""

    def __init__(self, message: str, status_code: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message, status_code)
        self.field = field


class NotFoundError(DashboardError):
    """Raised when a resource is not found."""
    pass


class SchemaError(DashboardError):
    """La respuesta del servidor no se pudo validar contra su esquema."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
