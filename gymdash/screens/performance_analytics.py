import logging
from typing import Optional

from gymdash.core.exceptions import ValidationError
from gymdash.schemas.analytics import ClientAnalytics
from gymdash.schemas.credential import Role
from gymdash.schemas.user import User
from gymdash.schemas.workout import Goal, Workout
from gymdash.screens.base import DashboardScreen

logger = logging.getLogger(__name__)

TIME_RANGES = ("week", "month", "year")


class PerformanceAnalyticsScreen(DashboardScreen):
    """
    Panel del entrenador: clientes y, para el cliente elegido, sus
    entrenamientos, objetivos y analíticas por periodo.
    """

    required_role = Role.TRAINER

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.clients = self.controller(User, name="clients")
        self.workouts = self.controller(Workout, name="client_workouts")
        self.goals = self.controller(Goal, name="client_goals")
        self.analytics = self.controller(ClientAnalytics, name="client_analytics")
        self.client_id: Optional[str] = None
        self.time_range = "month"

    async def load(self) -> None:
        trainer_id = await self.current_profile_id()
        if not trainer_id:
            logger.warning("Perfil de entrenador sin id, no se pueden cargar clientes")
            return
        await self.clients.fetch_collection(f"/trainers/{trainer_id}/clients")

    async def select_client(self, client_id: str) -> None:
        if not self.authorized:
            return
        self.clients.select_item(client_id)
        self.client_id = client_id
        await self.workouts.fetch_collection(f"/workouts/user/{client_id}")
        await self.goals.fetch_collection(f"/goals/user/{client_id}")
        await self.load_analytics()

    async def load_analytics(self, time_range: Optional[str] = None) -> Optional[ClientAnalytics]:
        if time_range is not None:
            if time_range not in TIME_RANGES:
                raise ValidationError(f"Periodo no válido: {time_range}", field="timeRange")
            self.time_range = time_range
        if self.client_id is None:
            return None
        return await self.analytics.fetch_document(
            f"/analytics/client/{self.client_id}", params={"timeRange": self.time_range}
        )
