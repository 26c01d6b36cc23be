from typing import Any, Dict, Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel


class UserMetrics(ApiModel):
    total: int = 0
    active: int = 0
    premium: int = 0
    new_this_month: int = 0


class WorkoutMetrics(ApiModel):
    total: int = 0
    completed: int = 0
    average_per_user: float = 0
    most_popular: Optional[str] = None


class FinanceMetrics(ApiModel):
    total_revenue: float = 0
    revenue_this_month: float = 0
    membership_revenue: float = 0
    trainer_revenue: float = 0


class MembershipMetrics(ApiModel):
    total: int = 0
    active: int = 0
    most_popular: Optional[str] = None


class TrainerMetrics(ApiModel):
    total: int = 0
    active: int = 0


class AdminAnalytics(ApiModel):
    """
    Resumen de /admin/analytics.

    Las secciones ausentes se rellenan con ceros. Los importes llegan como
    cadenas ("5000.00") y se convierten a float.
    """
    users: UserMetrics = Field(default_factory=UserMetrics)
    workouts: WorkoutMetrics = Field(default_factory=WorkoutMetrics)
    finance: FinanceMetrics = Field(default_factory=FinanceMetrics)
    memberships: MembershipMetrics = Field(default_factory=MembershipMetrics)
    trainers: TrainerMetrics = Field(default_factory=TrainerMetrics)


class ClientAnalytics(ApiModel):
    """Analíticas de un cliente para el panel del entrenador."""
    time_range: str = "month"
    workouts_completed: int = 0
    total_duration: float = 0
    calories_burned: float = 0
    goals_completed: int = 0
    progress: Dict[str, Any] = {}
