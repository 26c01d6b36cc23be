"""
UserManagementScreen - Gestión de usuarios desde el panel de admin.

- Lista /admin/users y la membresía activa de cada usuario
- Suspender/reactivar, editar y eliminar (cada escritura recarga la lista)
- Notificar a un usuario o a todos los listados
- Filtros locales por nombre, estado y plan
"""

import logging
from typing import Any, Dict, List, Optional

from gymdash.controllers.state import MutationResult
from gymdash.core.async_utils import batch_gather
from gymdash.schemas.common import BulkOperationResult
from gymdash.schemas.membership import Membership
from gymdash.schemas.user import User, UserUpdate
from gymdash.screens.base import DashboardScreen, build_payload

logger = logging.getLogger(__name__)

USERS_ENDPOINT = "/admin/users"


class UserManagementScreen(DashboardScreen):

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.users = self.controller(User, name="users")
        self.memberships: Dict[str, Optional[Membership]] = {}

    async def load(self) -> None:
        users = await self.users.fetch_collection(USERS_ENDPOINT)
        if users is not None:
            await self.load_memberships(users)

    async def _active_membership(self, user_id: str) -> Optional[Membership]:
        data = await self.guarded(self.api.get(f"/admin/memberships/user/{user_id}"))
        if not isinstance(data, list):
            return None
        for raw in data:
            membership = Membership.model_validate(raw)
            if membership.is_active:
                return membership
        return None

    async def load_memberships(self, users: List[User]) -> Dict[str, Optional[Membership]]:
        """
        Busca la membresía activa de cada usuario en paralelo.

        Una búsqueda fallida deja None para ese usuario sin afectar al resto.
        """
        results = await batch_gather(
            *(self._active_membership(user.id) for user in users),
            return_exceptions=True
        )
        memberships = {}
        for user, result in zip(users, results):
            if isinstance(result, BaseException):
                logger.warning(f"No se pudo obtener la membresía de {user.id}: {result}")
                memberships[user.id] = None
            else:
                memberships[user.id] = result
        self.memberships = memberships
        return memberships

    def plan_of(self, user: User) -> Optional[str]:
        membership = self.memberships.get(user.id)
        if membership is not None and membership.plan_type:
            return membership.plan_type
        return user.membership_plan

    async def toggle_suspension(self, user_id: str) -> MutationResult:
        user = self.users.find(user_id)
        suspended = not user.is_suspended if user is not None else True
        return await self.users.mutate(
            f"{USERS_ENDPOINT}/{user_id}", "PUT", {"isSuspended": suspended}, key=user_id
        )

    async def update_user(self, user_id: str, data: Any) -> MutationResult:
        payload = build_payload(UserUpdate, data)
        return await self.users.mutate(f"{USERS_ENDPOINT}/{user_id}", "PUT", payload, key=user_id)

    async def delete_user(self, user_id: str) -> MutationResult:
        result = await self.users.mutate(f"{USERS_ENDPOINT}/{user_id}", "DELETE", key=user_id)
        if result.ok:
            self.memberships.pop(user_id, None)
        return result

    async def notify_user(self, user_id: str, message: str) -> MutationResult:
        return await self.notify(user_id, user_id, message)

    async def notify_all(self, message: str) -> BulkOperationResult:
        return await self.send_activity_to_all([user.id for user in self.users.items], message)

    def filtered(
        self,
        search: str = "",
        status: str = "all",
        membership: str = "all"
    ) -> List[User]:
        """Filtra la lista cargada. status: all/active/inactive."""
        term = search.strip().lower()
        result = []
        for user in self.users.items:
            if term and term not in user.name.lower() and term not in (user.email or "").lower():
                continue
            if status != "all" and user.status != status:
                continue
            if membership != "all" and (self.plan_of(user) or "").lower() != membership.lower():
                continue
            result.append(user)
        return result
