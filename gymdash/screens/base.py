"""
Base de las pantallas del dashboard.

Una pantalla agrupa uno o varios AuthenticatedResourceController que
comparten el cliente HTTP, el proveedor de credenciales y el navegador.
open() autentica y hace la carga inicial; close() desmonta.
"""

import logging
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gymdash.api.client import ApiClient
from gymdash.controllers.navigation import Navigator
from gymdash.controllers.resource_controller import AuthenticatedResourceController
from gymdash.controllers.state import ControllerState, MutationResult
from gymdash.core.async_utils import batch_gather
from gymdash.core.credentials import CredentialProvider
from gymdash.core.exceptions import (
    AuthError,
    DashboardError,
    MembershipAccessError,
    PermissionError,
    ValidationError,
)
from gymdash.schemas.common import BulkOperationResult
from gymdash.schemas.credential import Role
from gymdash.schemas.notification import UserActivityCreate

logger = logging.getLogger(__name__)

SKIPPED = object()


def build_payload(schema: Type[BaseModel], data: Any) -> Dict[str, Any]:
    """
    Valida un formulario local y lo convierte en el cuerpo JSON del request.

    Raises:
        ValidationError: Con el primer campo inválido, sin emitir request
    """
    if isinstance(data, schema):
        model = data
    else:
        try:
            model = schema.model_validate(data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"{field}: {first.get('msg')}", field=field or None) from e
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class DashboardScreen:
    """Pantalla protegida por rol con sus controladores."""

    required_role: Role = Role.ADMIN

    def __init__(self, api: ApiClient, credentials: CredentialProvider, navigator: Navigator):
        self.api = api
        self.credentials = credentials
        self.navigator = navigator
        self.controllers: List[AuthenticatedResourceController] = []

    def controller(self, schema: Optional[Type[BaseModel]] = None, name: Optional[str] = None) -> AuthenticatedResourceController:
        ctrl = AuthenticatedResourceController(
            self.api, self.credentials, self.navigator, schema=schema, name=name
        )
        ctrl.on_unauthorized = self._propagate_denial
        self.controllers.append(ctrl)
        return ctrl

    @property
    def main(self) -> AuthenticatedResourceController:
        return self.controllers[0]

    @property
    def authorized(self) -> bool:
        return all(c.state != ControllerState.UNAUTHORIZED for c in self.controllers)

    def _propagate_denial(self, error: DashboardError) -> None:
        # Una pantalla sin acceso deja todos sus controladores en UNAUTHORIZED
        for ctrl in self.controllers:
            ctrl.deny(error, self.required_role)

    async def deny_access(self, error: DashboardError) -> None:
        """Destruye la credencial tras un 401/403 recibido fuera de un controlador."""
        await self.credentials.clear()
        self._propagate_denial(error)

    async def guarded(self, call: Awaitable[Any]) -> Any:
        """
        Ejecuta una llamada directa a la API con el mismo manejo de
        autenticación que los controladores.

        Raises:
            El DashboardError original; un AuthError/PermissionError deja
            antes la pantalla en UNAUTHORIZED
        """
        try:
            return await call
        except (AuthError, PermissionError) as e:
            if self.main.mounted and not isinstance(e, MembershipAccessError):
                await self.deny_access(e)
            raise

    async def open(self) -> ControllerState:
        """
        Autentica todos los controladores y lanza la carga inicial.

        Si el primero queda UNAUTHORIZED, ningún controlador hace fetch y
        todos quedan UNAUTHORIZED.
        """
        for ctrl in self.controllers:
            state = await ctrl.initialize(self.required_role)
            if state == ControllerState.UNAUTHORIZED:
                logger.info(f"{type(self).__name__}: acceso denegado, sin carga inicial")
                return state
        await self.load()
        return self.main.state

    async def load(self) -> None:
        """Carga inicial de la pantalla. Las subclases la implementan."""
        raise NotImplementedError

    def close(self) -> None:
        for ctrl in self.controllers:
            ctrl.unmount()

    async def current_profile(self) -> Dict[str, Any]:
        credential = await self.credentials.get()
        return credential.profile_snapshot

    async def current_profile_id(self) -> Optional[str]:
        profile = await self.current_profile()
        value = profile.get("_id") or profile.get("id")
        return str(value) if value is not None else None

    async def send_activity(self, user_id: str, message: str, activity_type: str = "Notification") -> Any:
        """Registra una actividad para un usuario (canal de notificación del admin)."""
        payload = build_payload(
            UserActivityCreate,
            {"user_id": user_id, "activity_type": activity_type, "description": message}
        )
        return await self.guarded(self.api.post("/admin/user-activity", json=payload))

    async def notify(
        self,
        key: str,
        user_id: str,
        message: str,
        activity_type: str = "Notification"
    ) -> MutationResult:
        if not self.authorized:
            return MutationResult(ok=False, key=key, skipped=True, error=self.main.error)
        try:
            data = await self.send_activity(user_id, message, activity_type)
        except DashboardError as e:
            logger.error(f"Error notificando a {user_id}: {e.message}")
            return MutationResult(ok=False, key=key, error=e.message)
        return MutationResult(ok=True, key=key, data=data)

    async def _send_if_authorized(self, user_id: str, message: str, activity_type: str) -> Any:
        if not self.authorized:
            return SKIPPED
        return await self.send_activity(user_id, message, activity_type)

    async def send_activity_to_all(
        self,
        user_ids: Iterable[str],
        message: str,
        activity_type: str = "Notification"
    ) -> BulkOperationResult:
        """
        Envía la misma notificación a varios destinatarios.

        Los envíos se ejecutan en paralelo y cada fallo se cuenta por
        separado; un fallo no cancela el resto. Un 401/403 sí: la sesión se
        cierra, el resultado queda abortado y los envíos restantes no salen.
        """
        ids = list(user_ids)
        if not message or not message.strip():
            raise ValidationError("El mensaje no puede estar vacío", field="message")

        outcome = BulkOperationResult(total=len(ids))
        if not self.authorized:
            outcome.aborted = True
            outcome.skipped = len(ids)
            return outcome

        results = await batch_gather(
            *(self._send_if_authorized(user_id, message, activity_type) for user_id in ids),
            return_exceptions=True
        )

        for user_id, result in zip(ids, results):
            if result is SKIPPED:
                outcome.skipped += 1
            elif isinstance(result, (AuthError, PermissionError)) and not isinstance(result, MembershipAccessError):
                if not outcome.aborted:
                    outcome.errors.append(result.message)
                outcome.aborted = True
                outcome.skipped += 1
            elif isinstance(result, DashboardError):
                outcome.failed += 1
                outcome.errors.append(f"{user_id}: {result.message}")
            elif isinstance(result, Exception):
                raise result
            else:
                outcome.succeeded += 1
        logger.info(f"Notificación masiva: {outcome.summary()}")
        return outcome
