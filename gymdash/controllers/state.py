from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ControllerState(str, Enum):
    """
    Estados de un AuthenticatedResourceController.

    IDLE → (initialize) → UNAUTHORIZED | LOADING → READY | ERROR
    ERROR → (retry) → LOADING. UNAUTHORIZED es terminal.
    """
    IDLE = "idle"
    UNAUTHORIZED = "unauthorized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class ViewMode(str, Enum):
    """Modo de la pantalla: lista, detalle de un elemento o formulario de alta."""
    LIST = "list"
    DETAIL = "detail"
    CREATE = "create"


class RefreshStrategy(str, Enum):
    """Cómo se reconcilia la caché local tras una mutación exitosa."""
    REFETCH = "refetch"
    MERGE = "merge"


class MutationResult(BaseModel):
    """Resultado de una mutación tal como lo consume la pantalla."""
    ok: bool
    key: str
    data: Any = None
    error: Optional[str] = None
    skipped: bool = False
