from datetime import datetime
from typing import Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel, Resource


class Announcement(Resource):
    """Anuncio del gimnasio. Default: is_active=True."""
    title: str = ""
    content: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None


class AnnouncementPayload(ApiModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    is_active: bool = True
