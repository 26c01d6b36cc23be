from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel, Resource


class Exercise(ApiModel):
    name: str
    sets: int = 0
    reps: int = 0
    weight: Optional[float] = None
    duration: Optional[float] = None
    rest_time: int = 60
    notes: str = ""
    category: str = "strength"


class WorkoutProgram(Resource):
    """Programa de entrenamiento. Defaults: difficulty="Beginner", exercises=[]."""
    title: str = ""
    description: str = ""
    trainer_id: Optional[str] = None
    user_id: Optional[str] = None
    is_library_plan: bool = False
    exercises: List[Exercise] = []
    category: Optional[str] = None
    difficulty: str = "Beginner"
    estimated_duration: float = 0
    estimated_calories_burn: float = 0
    tags: List[str] = []
    image_url: str = ""


class WorkoutProgramPayload(ApiModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    exercises: List[Exercise] = []
    category: Optional[str] = None
    difficulty: str = "Beginner"
    estimated_duration: float = 0
    is_library_plan: bool = True


class Workout(Resource):
    """Entrada del historial de entrenamientos de un cliente."""
    user_id: Optional[str] = None
    title: Optional[str] = None
    exercises: List[Dict[str, Any]] = []
    date: Optional[datetime] = None
    duration: Optional[float] = None
    calories_burned: Optional[float] = None


class Goal(Resource):
    """Objetivo de un usuario. Defaults: progress=0, status="active"."""
    user_id: Optional[str] = None
    goal_type: Optional[str] = None
    current_value: float = 0
    target_value: float = 0
    deadline: Optional[datetime] = None
    frequency: str = "custom"
    notes: Optional[str] = None
    progress: float = 0
    status: str = "active"
    created_by: str = "user"


class GoalPayload(ApiModel):
    goal_type: str
    current_value: float = 0
    target_value: float = Field(..., gt=0)
    deadline: datetime
    frequency: str = "custom"
    notes: Optional[str] = None


class GoalProgress(ApiModel):
    current_value: float
    notes: Optional[str] = None
