"""
AuthenticatedResourceController - Sincronización de una colección protegida.

Media entre un endpoint de colección protegido y la pantalla que lo muestra:

- initialize(): comprueba credencial y rol antes de cualquier request
- fetch_collection(): reemplaza la caché local; solo aplica el último request
- mutate(): escribe en la API y reconcilia la caché con la representación del
  servidor (re-fetch o merge por id), nunca con la suposición del cliente
- select_item()/open_create_form(): modos de vista mutuamente excluyentes
- retry(): único camino para reintentar tras un error transitorio
- unmount(): a partir de aquí toda resolución pendiente es un no-op

La caché (items) es local a cada instancia; nunca se comparte entre pantallas.
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Optional, Set, Tuple, Type, TypeVar

from pydantic import BaseModel

from gymdash.api.client import ApiClient, validate_response
from gymdash.core.async_utils import async_timed
from gymdash.core.config import get_settings
from gymdash.core.credentials import CredentialProvider
from gymdash.core.exceptions import (
    AuthError,
    DashboardError,
    MembershipAccessError,
    NotFoundError,
    PermissionError,
    SchemaError,
)
from gymdash.controllers.navigation import Navigator, login_route_for
from gymdash.controllers.state import ControllerState, MutationResult, RefreshStrategy, ViewMode
from gymdash.schemas.credential import Role

logger = logging.getLogger("resource_controller")

T = TypeVar("T")

NEW_ENTITY_KEY = "new"
NO_LONGER_EXISTS = "El elemento ya no existe."


class AuthenticatedResourceController(Generic[T]):
    """
    Controlador de una colección de recursos protegida por rol.

    Args:
        api: Cliente HTTP autenticado
        credentials: Proveedor de credenciales inyectado
        navigator: Destino de las redirecciones a login
        schema: Esquema Pydantic de cada elemento (None = dicts crudos)
        name: Nombre para logs
        id_field: Campo identificador en los dicts crudos
    """

    def __init__(
        self,
        api: ApiClient,
        credentials: CredentialProvider,
        navigator: Navigator,
        schema: Optional[Type[BaseModel]] = None,
        name: Optional[str] = None,
        id_field: str = "_id"
    ):
        self.api = api
        self.credentials = credentials
        self.navigator = navigator
        self.schema = schema
        self.name = name or (schema.__name__ if schema else "resource")
        self.id_field = id_field

        self.state = ControllerState.IDLE
        self.items: List[T] = []
        self.document: Any = None
        self.error: Optional[str] = None
        self.error_type: Optional[str] = None
        self.notice: Optional[str] = None
        self.stale = False
        self.redirect_target: Optional[str] = None

        self.selected: Optional[T] = None
        self.view_mode = ViewMode.LIST

        self.pending: Set[str] = set()
        self.mutation_errors: Dict[str, str] = {}

        self.required_role: Optional[Role] = None
        self.on_unauthorized: Optional[Callable[[DashboardError], None]] = None
        self.mounted = True
        self._fetch_seq = 0
        self._last_fetch: Optional[Tuple[str, Optional[Dict[str, Any]], bool]] = None

    # ------------------------------------------------------------------
    # Autenticación
    # ------------------------------------------------------------------

    async def initialize(self, required_role: Role) -> ControllerState:
        """
        Comprueba la credencial persistida contra el rol requerido.

        Sin token o con rol distinto → UNAUTHORIZED y redirección al login del
        rol requerido, sin emitir ningún fetch. En otro caso → LOADING.
        """
        self.required_role = required_role
        if self.state == ControllerState.UNAUTHORIZED or not self.mounted:
            return self.state

        credential = await self.credentials.get()
        if not self.mounted:
            return self.state

        if not credential.is_present:
            self._become_unauthorized(AuthError("Autenticación requerida. Inicia sesión."))
        elif credential.role != required_role:
            self._become_unauthorized(
                PermissionError("No tienes permiso para acceder a este recurso.")
            )
        else:
            logger.debug(f"[{self.name}] Credencial válida para rol {required_role.value} ({credential.token_prefix()})")
            self.state = ControllerState.LOADING
        return self.state

    def _become_unauthorized(self, error: DashboardError) -> None:
        self.state = ControllerState.UNAUTHORIZED
        self.error = error.message
        self.error_type = type(error).__name__
        self.pending.clear()
        self.redirect_target = login_route_for(self.required_role)
        logger.warning(f"[{self.name}] {self.error_type}: {error.message} → {self.redirect_target}")
        self.navigator.schedule_redirect(self.redirect_target, get_settings().REDIRECT_DELAY_SECONDS)
        if self.on_unauthorized is not None:
            self.on_unauthorized(error)

    def deny(self, error: DashboardError, required_role: Optional[Role] = None) -> None:
        """Pasa a UNAUTHORIZED por una denegación detectada fuera de este controlador."""
        if required_role is not None and self.required_role is None:
            self.required_role = required_role
        if self.is_terminal:
            return
        self._become_unauthorized(error)

    async def _handle_auth_failure(self, error: DashboardError) -> None:
        # Un 401/403 del servidor invalida la credencial
        await self.credentials.clear()
        self._become_unauthorized(error)

    @property
    def is_terminal(self) -> bool:
        return self.state == ControllerState.UNAUTHORIZED or not self.mounted

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def _entity_id(self, item: Any) -> Optional[str]:
        if isinstance(item, dict):
            value = item.get(self.id_field, item.get("id"))
        else:
            value = getattr(item, "id", None)
        return str(value) if value is not None else None

    def _parse_many(self, data: Any) -> List[T]:
        if self.schema is not None:
            return validate_response(data, self.schema, many=True)
        if not isinstance(data, list):
            raise SchemaError(f"Se esperaba una lista en la respuesta de {self.name}", payload=data)
        return list(data)

    def _parse_one(self, data: Any) -> T:
        if self.schema is not None:
            return validate_response(data, self.schema)
        if not isinstance(data, dict):
            raise SchemaError(f"Se esperaba un objeto en la respuesta de {self.name}", payload=data)
        return data

    def _is_live(self, seq: int) -> bool:
        return self.mounted and seq == self._fetch_seq and self.state != ControllerState.UNAUTHORIZED

    async def _load(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        parse: Callable[[Any], Any]
    ) -> Tuple[bool, Any]:
        """
        Emite un GET protegido aplicando las reglas de frescura.

        Returns:
            (aplicable, valor): aplicable es False si la respuesta quedó
            obsoleta, la pantalla se desmontó o el request falló
        """
        if self.state == ControllerState.IDLE:
            raise RuntimeError("initialize() debe llamarse antes de cargar datos")
        if self.is_terminal:
            return False, None

        self._fetch_seq += 1
        seq = self._fetch_seq
        self.state = ControllerState.LOADING

        try:
            value = parse(await self.api.get(endpoint, params=params))
        except Exception as e:
            if not self._is_live(seq):
                logger.debug(f"[{self.name}] Fallo descartado de request obsoleto #{seq}: {e}")
                return False, None
            if not isinstance(e, DashboardError):
                raise
            await self._handle_load_failure(e)
            return False, None

        if not self._is_live(seq):
            logger.debug(f"[{self.name}] Respuesta obsoleta #{seq} descartada (último #{self._fetch_seq})")
            return False, None

        self.state = ControllerState.READY
        self.error = None
        self.error_type = None
        return True, value

    async def _handle_load_failure(self, error: DashboardError) -> None:
        if isinstance(error, MembershipAccessError):
            # Credencial válida, plan insuficiente: se informa sin redirigir
            self.state = ControllerState.ERROR
        elif isinstance(error, (AuthError, PermissionError)):
            await self._handle_auth_failure(error)
            return
        else:
            self.state = ControllerState.ERROR
        self.error = error.message
        self.error_type = type(error).__name__
        logger.error(f"[{self.name}] Error cargando datos: {error.message}")

    @async_timed()
    async def fetch_collection(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[List[T]]:
        """
        Carga la colección y reemplaza la caché local completa.

        Returns:
            La nueva colección, o None si el resultado no se aplicó
        """
        self._last_fetch = (endpoint, params, True)
        applied, items = await self._load(endpoint, params, self._parse_many)
        if not applied:
            return None

        self.items = items
        self.stale = False
        self._refresh_selection()
        logger.info(f"[{self.name}] {len(items)} elementos cargados desde {endpoint}")
        return self.items

    async def fetch_document(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Carga un único recurso (resúmenes, perfil) con las mismas garantías."""
        self._last_fetch = (endpoint, params, False)
        applied, document = await self._load(endpoint, params, self._parse_one)
        if not applied:
            return None
        self.document = document
        self.stale = False
        return self.document

    async def retry(self) -> Any:
        """Reintento explícito del último fetch. Solo válido desde ERROR."""
        if self.state != ControllerState.ERROR or self._last_fetch is None:
            return None
        endpoint, params, is_collection = self._last_fetch
        logger.info(f"[{self.name}] Reintento manual de {endpoint}")
        if is_collection:
            return await self.fetch_collection(endpoint, params)
        return await self.fetch_document(endpoint, params)

    async def refresh(self) -> Any:
        """Vuelve a ejecutar el último fetch (tras una mutación)."""
        if self._last_fetch is None:
            return None
        endpoint, params, is_collection = self._last_fetch
        if is_collection:
            return await self.fetch_collection(endpoint, params)
        return await self.fetch_document(endpoint, params)

    async def load_item(self, endpoint: str, item_id: str) -> Optional[T]:
        """
        Carga el detalle de un elemento y lo selecciona.

        Si el servidor responde 404, el elemento se elimina de la caché y se
        muestra el aviso "ya no existe".
        """
        if self.is_terminal:
            return None
        try:
            item = self._parse_one(await self.api.get(endpoint))
        except Exception as e:
            if self.is_terminal:
                return None
            if isinstance(e, NotFoundError):
                self._forget(item_id)
                return None
            if isinstance(e, (AuthError, PermissionError)) and not isinstance(e, MembershipAccessError):
                await self._handle_auth_failure(e)
                return None
            if isinstance(e, DashboardError):
                self.error = e.message
                self.error_type = type(e).__name__
                return None
            raise
        if self.is_terminal:
            return None
        self._replace_or_append(item)
        self.selected = item
        self.view_mode = ViewMode.DETAIL
        return item

    # ------------------------------------------------------------------
    # Mutaciones
    # ------------------------------------------------------------------

    def is_pending(self, key: Optional[str] = None) -> bool:
        return (key or NEW_ENTITY_KEY) in self.pending

    async def mutate(
        self,
        endpoint: str,
        method: str,
        payload: Any = None,
        key: Optional[str] = None,
        strategy: RefreshStrategy = RefreshStrategy.REFETCH
    ) -> MutationResult:
        """
        Ejecuta una escritura y reconcilia la caché.

        Args:
            endpoint: Ruta de escritura
            method: POST, PUT o DELETE
            payload: Cuerpo JSON (dict o modelo Pydantic)
            key: Id de la entidad afectada ("new" para altas)
            strategy: REFETCH (por defecto) o MERGE con la entidad devuelta

        Returns:
            MutationResult con ok, data o error. Un envío duplicado mientras
            la misma clave está pendiente se descarta (skipped=True).
        """
        key = key or NEW_ENTITY_KEY
        method = method.upper()
        if self.is_terminal:
            return MutationResult(ok=False, key=key, skipped=True, error=self.error)
        if key in self.pending:
            logger.warning(f"[{self.name}] Mutación duplicada ignorada para {key}")
            return MutationResult(ok=False, key=key, skipped=True)

        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)

        was_stale = self.stale
        self.pending.add(key)
        self.mutation_errors.pop(key, None)
        self.stale = True

        try:
            data = await self.api.request(method, endpoint, json=payload)
        except Exception as e:
            self.pending.discard(key)
            if self.is_terminal:
                return MutationResult(ok=False, key=key, skipped=True)
            if not isinstance(e, DashboardError):
                raise
            self.stale = was_stale
            return await self._handle_mutation_failure(key, e)
        self.pending.discard(key)

        if self.is_terminal:
            return MutationResult(ok=True, key=key, data=data)

        logger.info(f"[{self.name}] {method} {endpoint} completado")
        await self._reconcile(key, method, data, strategy)
        return MutationResult(ok=True, key=key, data=data)

    async def _handle_mutation_failure(self, key: str, error: DashboardError) -> MutationResult:
        if isinstance(error, (AuthError, PermissionError)) and not isinstance(error, MembershipAccessError):
            await self._handle_auth_failure(error)
            return MutationResult(ok=False, key=key, error=error.message)

        if isinstance(error, NotFoundError):
            if self.selected is not None and self._entity_id(self.selected) == key:
                self.clear_selection()
            self.notice = NO_LONGER_EXISTS
            self.stale = True

        # La caché queda intacta: sin aplicación parcial
        self.mutation_errors[key] = error.message
        logger.error(f"[{self.name}] Mutación fallida para {key}: {error.message}")
        return MutationResult(ok=False, key=key, error=error.message)

    def _supersede_fetches(self) -> None:
        # Un GET emitido antes de la escritura ya no puede aplicarse
        self._fetch_seq += 1
        if self.state == ControllerState.LOADING:
            self.state = ControllerState.READY

    async def _reconcile(self, key: str, method: str, data: Any, strategy: RefreshStrategy) -> None:
        if strategy == RefreshStrategy.MERGE:
            if method == "DELETE":
                self._supersede_fetches()
                self._remove(key)
                self.stale = False
                return
            if isinstance(data, dict):
                try:
                    entity = self._parse_one(data)
                except SchemaError:
                    logger.warning(f"[{self.name}] Entidad devuelta no válida, se recarga la colección")
                else:
                    self._supersede_fetches()
                    self._replace_or_append(entity)
                    self.stale = False
                    return
        await self.refresh()

    # ------------------------------------------------------------------
    # Caché local
    # ------------------------------------------------------------------

    def find(self, item_id: str) -> Optional[T]:
        for item in self.items:
            if self._entity_id(item) == str(item_id):
                return item
        return None

    def snapshot(self) -> List[T]:
        return list(self.items)

    def _replace_or_append(self, entity: T) -> None:
        entity_id = self._entity_id(entity)
        for index, item in enumerate(self.items):
            if self._entity_id(item) == entity_id:
                self.items = self.items[:index] + [entity] + self.items[index + 1:]
                if self.selected is not None and self._entity_id(self.selected) == entity_id:
                    self.selected = entity
                return
        self.items = self.items + [entity]

    def _remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if self._entity_id(item) != str(item_id)]
        if self.selected is not None and self._entity_id(self.selected) == str(item_id):
            self.clear_selection()

    def _forget(self, item_id: str) -> None:
        was_selected = self.selected is not None and self._entity_id(self.selected) == str(item_id)
        self._remove(item_id)
        self.notice = NO_LONGER_EXISTS
        logger.info(f"[{self.name}] {item_id} ya no existe en el servidor (seleccionado={was_selected})")

    def _refresh_selection(self) -> None:
        if self.selected is None:
            return
        fresh = self.find(self._entity_id(self.selected))
        if fresh is None:
            self.clear_selection()
            self.notice = NO_LONGER_EXISTS
        else:
            self.selected = fresh

    # ------------------------------------------------------------------
    # Selección y modos de vista
    # ------------------------------------------------------------------

    def select_item(self, item_id: str) -> Optional[T]:
        """Selecciona un elemento de la caché; cierra el formulario de alta."""
        item = self.find(item_id)
        if item is None:
            self.notice = NO_LONGER_EXISTS
            return None
        self.selected = item
        self.view_mode = ViewMode.DETAIL
        self.notice = None
        return item

    def clear_selection(self) -> None:
        self.selected = None
        if self.view_mode == ViewMode.DETAIL:
            self.view_mode = ViewMode.LIST

    def open_create_form(self) -> None:
        """Abre el formulario de alta; descarta la selección."""
        self.selected = None
        self.view_mode = ViewMode.CREATE

    def close_create_form(self) -> None:
        if self.view_mode == ViewMode.CREATE:
            self.view_mode = ViewMode.LIST

    def unmount(self) -> None:
        """La pantalla se desmonta: las resoluciones pendientes serán no-ops."""
        self.mounted = False
        logger.debug(f"[{self.name}] Desmontado con {len(self.pending)} mutaciones pendientes")
