import logging
from typing import Any

from gymdash.controllers.state import MutationResult
from gymdash.schemas.common import BulkOperationResult
from gymdash.schemas.trainer import Trainer, TrainerApproval, TrainerUpdate
from gymdash.screens.base import DashboardScreen, build_payload

logger = logging.getLogger(__name__)

TRAINERS_ENDPOINT = "/admin/trainers"
TRAINER_NOTIFICATION = "TrainerNotification"


class TrainerManagementScreen(DashboardScreen):
    """Alta, aprobación y gestión de entrenadores."""

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.trainers = self.controller(Trainer, name="trainers")

    async def load(self) -> None:
        await self.trainers.fetch_collection(TRAINERS_ENDPOINT)

    async def view_trainer(self, trainer_id: str):
        return await self.trainers.load_item(f"{TRAINERS_ENDPOINT}/{trainer_id}", trainer_id)

    async def update_trainer(self, trainer_id: str, data: Any) -> MutationResult:
        payload = build_payload(TrainerUpdate, data)
        return await self.trainers.mutate(f"{TRAINERS_ENDPOINT}/{trainer_id}", "PUT", payload, key=trainer_id)

    async def reject_trainer(self, trainer_id: str) -> MutationResult:
        return await self.trainers.mutate(
            f"{TRAINERS_ENDPOINT}/{trainer_id}", "PUT",
            {"isActive": False, "approved": False},
            key=trainer_id
        )

    async def approve_trainer(self, trainer_id: str, approved_salary: Any) -> MutationResult:
        """
        Aprueba un entrenador con su salario.

        Raises:
            ValidationError: Si el salario no es un número positivo (sin request)
        """
        payload = build_payload(TrainerApproval, {"trainer_id": trainer_id, "approved_salary": approved_salary})
        return await self.trainers.mutate(f"{TRAINERS_ENDPOINT}/approve", "POST", payload, key=trainer_id)

    async def delete_trainer(self, trainer_id: str) -> MutationResult:
        return await self.trainers.mutate(f"{TRAINERS_ENDPOINT}/{trainer_id}", "DELETE", key=trainer_id)

    async def notify_trainer(self, trainer_id: str, message: str) -> MutationResult:
        return await self.notify(trainer_id, trainer_id, message, TRAINER_NOTIFICATION)

    async def notify_all(self, message: str) -> BulkOperationResult:
        ids = [trainer.id for trainer in self.trainers.items]
        return await self.send_activity_to_all(ids, message, TRAINER_NOTIFICATION)

    def pending_approval(self):
        return [t for t in self.trainers.items if not t.approved]
