"""
DashboardSession - Arranque y cierre del dashboard.

Configura logging, construye el proveedor de credenciales según
CREDENTIAL_BACKEND y comparte un único ApiClient entre todas las pantallas.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Type, TypeVar

import httpx

from gymdash.api.auth import AuthService
from gymdash.api.client import ApiClient
from gymdash.controllers.navigation import Navigator
from gymdash.core.credentials import CredentialProvider, RedisCredentialStore, build_credential_provider
from gymdash.core.logging_config import setup_logging
from gymdash.screens.base import DashboardScreen

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=DashboardScreen)


class DashboardSession:
    """Dependencias compartidas por las pantallas de una sesión."""

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        navigator: Optional[Navigator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: Optional[str] = None
    ):
        self.credentials = credentials or build_credential_provider()
        self.navigator = navigator or Navigator()
        self.api = ApiClient(self.credentials, base_url=base_url, transport=transport)
        self.auth = AuthService(self.api, self.credentials)

    def screen(self, screen_class: Type[S], **kwargs) -> S:
        return screen_class(self.api, self.credentials, self.navigator, **kwargs)

    async def close(self) -> None:
        self.navigator.cancel()
        await self.api.aclose()
        store = self.credentials.store
        if isinstance(store, RedisCredentialStore):
            try:
                await store.redis_client.aclose()
                logger.info("Conexión Redis de credenciales cerrada.")
            except Exception as e:
                logger.error(f"Error cerrando conexión Redis: {e}", exc_info=True)


@asynccontextmanager
async def dashboard_session(**kwargs):
    """
    Ciclo de vida completo: logging al inicio, cierre de conexiones al salir.

    Uso:
        async with dashboard_session() as session:
            await session.auth.login_admin(email, password)
            users = session.screen(UserManagementScreen)
            await users.open()
    """
    setup_logging()
    logger.info("Sesión del dashboard iniciada")
    session = DashboardSession(**kwargs)
    try:
        yield session
    finally:
        await session.close()
        logger.info("Sesión del dashboard cerrada")
