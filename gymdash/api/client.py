"""
ApiClient - Cliente async para la API REST del gimnasio.

Frontera HTTP del dashboard:
- Añade la cabecera Authorization: Bearer <token> desde el proveedor de credenciales
- Traduce los status HTTP a la taxonomía de errores de gymdash.core.exceptions
- Valida las respuestas contra su esquema Pydantic una sola vez
- Lleva el estado de alcanzabilidad del servidor (sin reintentos automáticos)

Todos los métodos HTTP son async utilizando httpx.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gymdash.core.config import get_settings
from gymdash.core.credentials import CredentialProvider
from gymdash.core.exceptions import (
    AuthError,
    DashboardError,
    MembershipAccessError,
    NotFoundError,
    PermissionError,
    SchemaError,
    TransientError,
    ValidationError,
)

logger = logging.getLogger("api_client")

T = TypeVar("T", bound=BaseModel)

MEMBERSHIP_DENIAL_MARKERS = ("Access denied", "membership required")


class ServerStatus:
    """
    Estado de conexión con el servidor.

    Solo informa: el dashboard muestra un aviso de servidor caído, pero los
    reintentos quedan siempre en manos del usuario.
    """

    def __init__(self):
        self.is_down = False
        self.last_check = 0.0
        self.failure_count = 0

    def mark_down(self) -> None:
        self.is_down = True
        self.last_check = time.time()
        self.failure_count += 1
        logger.warning(f"Servidor marcado como caído. Fallos consecutivos: {self.failure_count}")

    def mark_up(self) -> None:
        if self.is_down:
            logger.info("Servidor disponible de nuevo")
        self.is_down = False
        self.last_check = time.time()
        self.failure_count = 0


def _error_message(response: httpx.Response) -> str:
    """Extrae el mensaje legible de un cuerpo de error {message} o {error}."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or body.get("detail")
        if message:
            return str(message)
    text = response.text.strip()
    return text[:200] if text else f"Error HTTP {response.status_code}"


def raise_for_status(response: httpx.Response) -> None:
    """
    Convierte una respuesta no-2xx en la excepción correspondiente.

    Raises:
        AuthError: 401
        MembershipAccessError: 403 por plan de membresía insuficiente
        PermissionError: resto de 403
        NotFoundError: 404
        ValidationError: resto de 4xx
        TransientError: 5xx
    """
    status = response.status_code
    if status < 400:
        return
    message = _error_message(response)

    if status == 401:
        raise AuthError(message, status)
    if status == 403:
        try:
            body = response.json()
        except ValueError:
            body = {}
        error_text = body.get("error", "") if isinstance(body, dict) else ""
        if error_text and any(marker in error_text for marker in MEMBERSHIP_DENIAL_MARKERS):
            raise MembershipAccessError(
                error_text,
                required_plans=body.get("requiredPlans") or [],
                current_plan=body.get("currentPlan") or "None",
            )
        raise PermissionError(message, status)
    if status == 404:
        raise NotFoundError(message, status)
    if status < 500:
        raise ValidationError(message, status)
    raise TransientError(message, status)


def validate_response(data: Any, schema: Type[T], many: bool = False) -> Union[T, List[T]]:
    """
    Valida el cuerpo de una respuesta contra su esquema.

    Raises:
        SchemaError: si el cuerpo no cumple el esquema
    """
    try:
        if many:
            return TypeAdapter(List[schema]).validate_python(data)
        return schema.model_validate(data)
    except PydanticValidationError as e:
        logger.error(f"Respuesta inválida para {schema.__name__}: {e.error_count()} errores")
        raise SchemaError(f"Respuesta inválida del servidor ({schema.__name__})", payload=data) from e


class ApiClient:
    """
    Cliente HTTP autenticado compartido por las pantallas.

    Args:
        credentials: Proveedor de credenciales (solo lectura)
        base_url: URL base de la API (por defecto API_BASE_URL)
        timeout: Timeout por request en segundos
        transport: Transporte httpx opcional (tests)
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.credentials = credentials
        self.base_url = base_url or settings.API_BASE_URL
        self.server_status = ServerStatus()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _auth_headers(self) -> Dict[str, str]:
        credential = await self.credentials.get()
        if credential.is_present:
            return {"Authorization": f"Bearer {credential.token}"}
        return {}

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        authenticated: bool = True
    ) -> httpx.Response:
        headers = await self._auth_headers() if authenticated else {}
        logger.debug(f"API {method} {endpoint}")
        try:
            response = await self._client.request(method, endpoint, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            self.server_status.mark_down()
            raise TransientError(f"Tiempo de espera agotado en {endpoint}") from e
        except httpx.RequestError as e:
            self.server_status.mark_down()
            raise TransientError("No se puede conectar con el servidor. Comprueba que está en ejecución.") from e

        if response.status_code >= 500:
            self.server_status.mark_down()
        else:
            self.server_status.mark_up()

        if response.status_code >= 400:
            logger.error(f"API {method} {endpoint} respondió {response.status_code}")
        raise_for_status(response)
        return response

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        authenticated: bool = True
    ) -> Any:
        """
        Ejecuta un request y devuelve el cuerpo JSON decodificado.

        Returns:
            El JSON de la respuesta o None si el cuerpo está vacío
        """
        response = await self._send(method, endpoint, params=params, json=json, authenticated=authenticated)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(f"Respuesta no JSON en {endpoint}", payload=response.text) from e

    async def request_bytes(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None
    ) -> bytes:
        """Ejecuta un request y devuelve el cuerpo binario (reportes CSV)."""
        response = await self._send(method, endpoint, params=params, json=json)
        return response.content

    async def check_health(self) -> bool:
        """
        Comprueba /health sin credencial. Solo actualiza server_status.

        Returns:
            bool: True si el servidor responde 2xx
        """
        try:
            await self._send("GET", "/health", authenticated=False)
        except DashboardError as e:
            logger.warning(f"Health check fallido: {e}")
            if not isinstance(e, TransientError):
                self.server_status.mark_down()
            return False
        return True

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("PUT", endpoint, json=json)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)
