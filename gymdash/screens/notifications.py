import logging
from typing import List

from gymdash.controllers.state import MutationResult, RefreshStrategy
from gymdash.schemas.credential import Role
from gymdash.schemas.notification import Notification
from gymdash.screens.base import DashboardScreen

logger = logging.getLogger(__name__)


class NotificationsScreen(DashboardScreen):
    """
    Notificaciones del usuario o entrenador con sesión.

    El endpoint depende del rol de la credencial, no de la URL actual.
    """

    required_role = Role.USER

    def __init__(self, api, credentials, navigator, role: Role = Role.USER):
        super().__init__(api, credentials, navigator)
        self.required_role = role
        self.notifications = self.controller(Notification, name="notifications")

    async def load(self) -> None:
        recipient_id = await self.current_profile_id()
        if not recipient_id:
            logger.warning("Perfil sin id, no se pueden cargar notificaciones")
            return
        segment = "trainer" if self.required_role == Role.TRAINER else "user"
        await self.notifications.fetch_collection(f"/notifications/{segment}/{recipient_id}")

    async def mark_as_read(self, notification_id: str) -> MutationResult:
        return await self.notifications.mutate(
            f"/notifications/{notification_id}", "PUT",
            key=notification_id, strategy=RefreshStrategy.MERGE
        )

    def unread(self) -> List[Notification]:
        return [n for n in self.notifications.items if not n.is_read]
