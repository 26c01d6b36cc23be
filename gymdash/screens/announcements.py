from typing import Any, List

from gymdash.api.client import validate_response
from gymdash.controllers.state import MutationResult
from gymdash.schemas.announcement import Announcement, AnnouncementPayload
from gymdash.schemas.credential import Role
from gymdash.screens.base import DashboardScreen, build_payload

ADMIN_ANNOUNCEMENTS = "/admin/announcements"


class AnnouncementsScreen(DashboardScreen):
    """CRUD de anuncios (admin)."""

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.announcements = self.controller(Announcement, name="announcements")

    async def load(self) -> None:
        await self.announcements.fetch_collection(ADMIN_ANNOUNCEMENTS)

    async def create_announcement(self, data: Any) -> MutationResult:
        payload = build_payload(AnnouncementPayload, data)
        return await self.announcements.mutate(ADMIN_ANNOUNCEMENTS, "POST", payload)

    async def update_announcement(self, announcement_id: str, data: Any) -> MutationResult:
        payload = build_payload(AnnouncementPayload, data)
        return await self.announcements.mutate(
            f"{ADMIN_ANNOUNCEMENTS}/{announcement_id}", "PUT", payload, key=announcement_id
        )

    async def delete_announcement(self, announcement_id: str) -> MutationResult:
        return await self.announcements.mutate(
            f"{ADMIN_ANNOUNCEMENTS}/{announcement_id}", "DELETE", key=announcement_id
        )


class PublicAnnouncementsScreen(DashboardScreen):
    """Anuncios activos tal como los ve un usuario."""

    required_role = Role.USER

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.announcements = self.controller(Announcement, name="public_announcements")

    async def load(self) -> None:
        await self.announcements.fetch_collection("/announcements")

    def active(self) -> List[Announcement]:
        return [a for a in self.announcements.items if a.is_active]


async def fetch_public_announcements(api) -> List[Announcement]:
    """Lectura sin sesión de /announcements (página pública)."""
    data = await api.request("GET", "/announcements", authenticated=False)
    return validate_response(data or [], Announcement, many=True)
