from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from gymdash.schemas.base import ApiModel, Resource


class Trainer(Resource):
    """Entrenador. Defaults: approved=False, is_active=False, specialties=[]."""
    name: str = ""
    email: Optional[str] = None
    specialties: List[str] = []
    approved: bool = False
    is_active: bool = False
    phone: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    expected_salary: Optional[float] = None
    approved_salary: Optional[float] = None
    join_date: Optional[datetime] = None


class TrainerUpdate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    specialties: Optional[List[str]] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    is_active: Optional[bool] = None
    approved: Optional[bool] = None


class TrainerApproval(ApiModel):
    """Payload de aprobación: el salario debe ser un número positivo."""
    trainer_id: str
    approved_salary: float = Field(..., gt=0, description="Salario mensual aprobado")

    @field_validator("trainer_id")
    def validate_trainer_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("trainer_id es obligatorio")
        return v
