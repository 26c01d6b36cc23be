from typing import Any

from gymdash.controllers.state import MutationResult
from gymdash.schemas.workout import WorkoutProgram, WorkoutProgramPayload
from gymdash.screens.base import DashboardScreen, build_payload


class ContentManagementScreen(DashboardScreen):
    """Biblioteca de programas de entrenamiento (admin)."""

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.programs = self.controller(WorkoutProgram, name="workout_programs")

    async def load(self) -> None:
        await self.programs.fetch_collection("/workout-programs/admin/all")

    async def create_program(self, data: Any) -> MutationResult:
        payload = build_payload(WorkoutProgramPayload, data)
        result = await self.programs.mutate("/workout-programs", "POST", payload)
        if result.ok:
            self.programs.close_create_form()
        return result

    async def update_program(self, program_id: str, data: Any) -> MutationResult:
        payload = build_payload(WorkoutProgramPayload, data)
        return await self.programs.mutate(f"/workout-programs/{program_id}", "PUT", payload, key=program_id)

    async def delete_program(self, program_id: str) -> MutationResult:
        return await self.programs.mutate(f"/workout-programs/{program_id}", "DELETE", key=program_id)
