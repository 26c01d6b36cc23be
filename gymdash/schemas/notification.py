from datetime import datetime
from typing import Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel, Resource


class Notification(Resource):
    """Notificación de usuario o entrenador. Default: status="Unread"."""
    recipient_id: Optional[str] = None
    recipient_model: Optional[str] = None
    type: Optional[str] = None
    message: str = ""
    status: str = "Unread"
    created_at: Optional[datetime] = None

    @property
    def is_read(self) -> bool:
        return self.status == "Read"


class UserActivityCreate(ApiModel):
    """Actividad registrada por el admin; se usa como canal de notificación."""
    user_id: str
    activity_type: str = "Notification"
    description: str = Field(..., min_length=1)


class UserActivity(Resource):
    user_id: Optional[str] = None
    activity_type: str = ""
    description: str = ""
    timestamp: Optional[datetime] = None
