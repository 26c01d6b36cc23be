"""
AdminSettingsScreen - Perfil del administrador.

La imagen de perfil se sube primero al CDN y solo su URL viaja a la API.
"""

import logging
from typing import Any, Dict, Optional

from gymdash.api.upload import ImageUploadService
from gymdash.controllers.state import MutationResult
from gymdash.schemas.base import ApiModel
from gymdash.screens.base import DashboardScreen, build_payload

logger = logging.getLogger(__name__)

PROFILE_ENDPOINT = "/admin/profile"


class AdminProfileUpdate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None


class AdminSettingsScreen(DashboardScreen):

    def __init__(self, api, credentials, navigator, uploader: Optional[ImageUploadService] = None):
        super().__init__(api, credentials, navigator)
        self.profile = self.controller(name="admin_profile")
        self.uploader = uploader or ImageUploadService()

    async def load(self) -> None:
        await self.profile.fetch_document(PROFILE_ENDPOINT)

    async def update_profile(self, data: Any) -> MutationResult:
        payload = build_payload(AdminProfileUpdate, data)
        return await self.profile.mutate(PROFILE_ENDPOINT, "PUT", payload, key="profile")

    async def upload_profile_image(self, filename: str, content: bytes) -> MutationResult:
        """Sube la imagen al CDN y guarda la URL devuelta en el perfil."""
        url = await self.uploader.upload_image(filename, content)
        return await self.update_profile({"image": url})

    @property
    def data(self) -> Dict[str, Any]:
        return self.profile.document or {}
