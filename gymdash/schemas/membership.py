from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from gymdash.schemas.base import ApiModel, Resource


class Membership(Resource):
    """
    Membresía de un usuario.

    El servidor envía `userId` como id plano o como objeto poblado
    ({"_id": ...}); algunos registros antiguos usan `user`. owner_id
    normaliza los tres casos. Default: status="Active".
    """
    user_id: Any = None
    user: Optional[str] = None
    plan_type: Optional[str] = None
    duration: Optional[str] = None
    status: str = "Active"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    price: float = 0

    @property
    def owner_id(self) -> Optional[str]:
        if isinstance(self.user_id, dict):
            owner = self.user_id.get("_id") or self.user_id.get("id")
            return str(owner) if owner is not None else None
        if self.user_id is not None:
            return str(self.user_id)
        return self.user

    @property
    def is_active(self) -> bool:
        return self.status == "Active"


class MembershipUpdate(ApiModel):
    plan_type: Optional[str] = None
    duration: Optional[str] = None
    status: Optional[str] = None
    end_date: Optional[datetime] = None
    price: Optional[float] = None


class MembershipPlanCreate(ApiModel):
    """Esquema para crear un plan de membresía"""
    name: str = Field(..., min_length=1, max_length=100, description="Nombre del plan")
    price: float = Field(..., ge=0, description="Precio del plan")
    duration: str = Field(..., description="Monthly, Quarterly o Yearly")
    features: list = []
    description: Optional[str] = None

    @field_validator("duration")
    def validate_duration(cls, v):
        allowed = ["Monthly", "Quarterly", "Yearly"]
        if v not in allowed:
            raise ValueError(f"duration must be one of: {allowed}")
        return v


class Payment(Resource):
    """Pago. Defaults: status="Completed", amount=0."""
    user_id: Any = None
    membership_id: Any = None
    amount: float = 0
    type: Optional[str] = None
    status: str = "Completed"
    plan_type: Optional[str] = None
    description: Optional[str] = None
    payment_date: Optional[datetime] = None
    transaction_id: Optional[str] = None


PAYMENT_STATUSES = ("Pending", "Completed", "Failed")
