import asyncio
import logging
from typing import Any, Callable, List, Optional

from gymdash.core.config import get_settings
from gymdash.schemas.credential import Role

logger = logging.getLogger(__name__)


def login_route_for(role: Optional[Role]) -> str:
    """Ruta de login correspondiente al rol (usuarios por defecto)."""
    settings = get_settings()
    if role == Role.ADMIN:
        return settings.ADMIN_LOGIN_ROUTE
    if role == Role.TRAINER:
        return settings.TRAINER_LOGIN_ROUTE
    return settings.USER_LOGIN_ROUTE


class Navigator:
    """
    Destino de las redirecciones que programan los controladores.

    La navegación real la hace el callback on_navigate (el router de la
    aplicación). Si hay un event loop corriendo y delay > 0, la redirección
    se difiere con loop.call_later.
    """

    def __init__(self, on_navigate: Optional[Callable[[str], Any]] = None):
        self.on_navigate = on_navigate
        self.scheduled: Optional[str] = None
        self.current_path: Optional[str] = None
        self.history: List[str] = []
        self._handle: Optional[asyncio.TimerHandle] = None

    def schedule_redirect(self, path: str, delay: float = 0.0) -> None:
        if self.scheduled == path and self._handle is not None:
            return
        self.cancel()
        self.scheduled = path
        logger.info(f"Redirección programada a {path} en {delay:.1f}s")
        if delay > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._handle = loop.call_later(delay, self._navigate, path)
                return
        self._navigate(path)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _navigate(self, path: str) -> None:
        self._handle = None
        self.current_path = path
        self.history.append(path)
        if self.on_navigate is not None:
            self.on_navigate(path)
