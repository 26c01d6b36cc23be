from typing import Any, List

from gymdash.controllers.state import MutationResult, RefreshStrategy
from gymdash.schemas.credential import Role
from gymdash.schemas.workout import Goal, GoalPayload, GoalProgress
from gymdash.screens.base import DashboardScreen, build_payload


class GoalsScreen(DashboardScreen):
    """Objetivos del usuario con sesión."""

    required_role = Role.USER

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.goals = self.controller(Goal, name="goals")

    async def load(self) -> None:
        user_id = await self.current_profile_id()
        if user_id:
            await self.goals.fetch_collection(f"/goals/user/{user_id}")

    async def create_goal(self, data: Any) -> MutationResult:
        payload = build_payload(GoalPayload, data)
        payload["userId"] = await self.current_profile_id()
        return await self.goals.mutate("/goals", "POST", payload)

    async def update_goal(self, goal_id: str, data: Any) -> MutationResult:
        payload = build_payload(GoalPayload, data)
        return await self.goals.mutate(f"/goals/{goal_id}", "PUT", payload, key=goal_id)

    async def update_progress(self, goal_id: str, data: Any) -> MutationResult:
        payload = build_payload(GoalProgress, data)
        return await self.goals.mutate(
            f"/goals/{goal_id}/progress", "PUT", payload,
            key=goal_id, strategy=RefreshStrategy.MERGE
        )

    async def delete_goal(self, goal_id: str) -> MutationResult:
        return await self.goals.mutate(f"/goals/{goal_id}", "DELETE", key=goal_id)

    def active(self) -> List[Goal]:
        return [g for g in self.goals.items if g.status == "active"]
