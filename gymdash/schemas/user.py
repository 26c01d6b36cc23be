from datetime import datetime
from typing import List, Optional

from gymdash.schemas.base import ApiModel, Resource


class User(Resource):
    """
    Usuario tal como lo devuelve /admin/users.

    Defaults: is_suspended=False, goals=[], membership_plan=None.
    """
    name: str = ""
    email: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    goals: List[str] = []
    image: Optional[str] = None
    is_suspended: bool = False
    membership_plan: Optional[str] = None
    last_login: Optional[datetime] = None
    registration_date: Optional[datetime] = None

    @property
    def status(self) -> str:
        """Estado para filtros: 'active' o 'inactive'."""
        return "inactive" if self.is_suspended else "active"


class UserUpdate(ApiModel):
    """Payload de edición de usuario desde el panel de admin."""
    name: Optional[str] = None
    email: Optional[str] = None
    membership_plan: Optional[str] = None
    goals: Optional[List[str]] = None
    is_suspended: Optional[bool] = None
