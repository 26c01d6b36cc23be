from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel


class Role(str, Enum):
    """Roles con pantallas protegidas propias."""
    USER = "user"
    TRAINER = "trainer"
    ADMIN = "admin"


class Credential(ApiModel):
    """
    Prueba persistida de autenticación más el rol.

    Se crea en el login, se lee al montar cada pantalla protegida y se
    destruye en el logout o al recibir un 401/403. Siempre se reemplaza
    completa, nunca se modifica parcialmente.
    """
    token: Optional[str] = None
    role: Optional[Role] = None
    profile_snapshot: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_present(self) -> bool:
        return bool(self.token)

    def token_prefix(self) -> str:
        """Prefijo del token apto para logs."""
        if not self.token:
            return "No token"
        return self.token[:10] + "..."
