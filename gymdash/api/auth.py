"""
AuthService - Flujos de login, logout y refresh de token.

Es el único escritor de la credencial persistida: las pantallas solo la leen
(y la destruyen ante un 401/403). Cada login limpia primero la credencial
anterior y la reemplaza completa al terminar.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import Field

from gymdash.api.client import ApiClient, validate_response
from gymdash.core.credentials import CredentialProvider
from gymdash.core.exceptions import AuthError, DashboardError, TransientError
from gymdash.schemas.base import ApiModel
from gymdash.schemas.credential import Credential, Role

logger = logging.getLogger("auth_service")

LOGIN_ENDPOINTS = {
    Role.ADMIN: "/admin/login",
    Role.TRAINER: "/trainers/login",
    Role.USER: "/users/login",
}

# Clave del perfil dentro de la respuesta de login según el rol
PROFILE_KEYS = {
    Role.ADMIN: "admin",
    Role.TRAINER: "trainer",
    Role.USER: "user",
}


class LoginResponse(ApiModel):
    token: str = Field(..., min_length=1)
    admin: Optional[Dict[str, Any]] = None
    trainer: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None


class TokenResponse(ApiModel):
    token: str = Field(..., min_length=1)


class AuthService:
    """Gestiona el ciclo de vida de la credencial."""

    def __init__(self, api: ApiClient, credentials: CredentialProvider):
        self.api = api
        self.credentials = credentials

    async def login(self, role: Role, email: str, password: str) -> Credential:
        """
        Inicia sesión con el endpoint del rol y persiste la credencial.

        Args:
            role: Rol con el que se inicia sesión
            email: Email de la cuenta
            password: Contraseña

        Returns:
            Credential: La credencial persistida

        Raises:
            AuthError: Si el servidor rechaza las credenciales
            TransientError: Si el servidor no es alcanzable
        """
        # Limpiar cualquier sesión previa antes del login
        await self.credentials.clear()
        logger.info(f"Intentando login de {role.value} con email: {email}")

        try:
            data = await self.api.request(
                "POST", LOGIN_ENDPOINTS[role],
                json={"email": email, "password": password},
                authenticated=False
            )
        except AuthError as e:
            raise AuthError("Email o contraseña inválidos. Inténtalo de nuevo.", e.status_code) from e

        response = validate_response(data, LoginResponse)
        profile = getattr(response, PROFILE_KEYS[role]) or {"email": email}
        credential = Credential(token=response.token, role=role, profile_snapshot=profile)
        await self.credentials.replace(credential)
        logger.info(f"Login de {role.value} exitoso (token {credential.token_prefix()})")
        return credential

    async def login_admin(self, email: str, password: str) -> Credential:
        return await self.login(Role.ADMIN, email, password)

    async def login_trainer(self, email: str, password: str) -> Credential:
        return await self.login(Role.TRAINER, email, password)

    async def login_user(self, email: str, password: str) -> Credential:
        return await self.login(Role.USER, email, password)

    async def logout(self) -> None:
        await self.credentials.clear()
        logger.info("Sesión cerrada")

    async def refresh_admin_token(self) -> Credential:
        """
        Renueva el token del admin conservando rol y perfil.

        Raises:
            AuthError: Si no hay sesión de admin o el servidor no emite token
        """
        current = await self.credentials.get()
        admin_id = current.profile_snapshot.get("_id") or current.profile_snapshot.get("id")
        if current.role != Role.ADMIN or not admin_id:
            raise AuthError("No se encontraron datos de admin. Inicia sesión de nuevo.")

        data = await self.api.request("POST", "/admin/refresh-token", json={"adminId": admin_id})
        response = validate_response(data, TokenResponse)
        refreshed = Credential(token=response.token, role=Role.ADMIN, profile_snapshot=current.profile_snapshot)
        await self.credentials.replace(refreshed)
        logger.info("Token de admin renovado correctamente")
        return refreshed

    async def register(self, role: Role, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra una cuenta nueva. No inicia sesión.

        Returns:
            Dict con success y message, como lo muestra el formulario
        """
        endpoint = {
            Role.ADMIN: "/admin/register",
            Role.TRAINER: "/trainers/register",
            Role.USER: "/users/register",
        }[role]
        try:
            body = await self.api.request("POST", endpoint, json=data, authenticated=role == Role.ADMIN)
        except TransientError:
            raise
        except DashboardError as e:
            logger.error(f"Error registrando {role.value}: {e.message}")
            return {"success": False, "message": e.message}
        message = body.get("message") if isinstance(body, dict) else None
        return {"success": True, "message": message or "Registro completado"}
