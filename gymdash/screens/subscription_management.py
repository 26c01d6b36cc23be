"""
SubscriptionManagementScreen - Membresías y pagos.

Dos controladores independientes: un fallo al cargar pagos no afecta a la
lista de membresías y viceversa.
"""

import logging
from typing import Any, List

from gymdash.controllers.state import MutationResult
from gymdash.core.async_utils import batch_gather
from gymdash.core.exceptions import ValidationError
from gymdash.schemas.membership import (
    PAYMENT_STATUSES,
    Membership,
    MembershipPlanCreate,
    MembershipUpdate,
    Payment,
)
from gymdash.screens.base import DashboardScreen, build_payload

logger = logging.getLogger(__name__)


class SubscriptionManagementScreen(DashboardScreen):

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.memberships = self.controller(Membership, name="memberships")
        self.payments = self.controller(Payment, name="payments")

    async def load(self) -> None:
        await batch_gather(
            self.memberships.fetch_collection("/admin/memberships"),
            self.payments.fetch_collection("/admin/payments"),
        )

    async def update_membership(self, membership_id: str, data: Any) -> MutationResult:
        payload = build_payload(MembershipUpdate, data)
        return await self.memberships.mutate(
            f"/memberships/{membership_id}", "PUT", payload, key=membership_id
        )

    async def create_plan(self, data: Any) -> MutationResult:
        payload = build_payload(MembershipPlanCreate, data)
        return await self.memberships.mutate("/admin/memberships/plans", "POST", payload)

    async def update_payment_status(self, payment_id: str, status: str) -> MutationResult:
        if status not in PAYMENT_STATUSES:
            raise ValidationError(f"Estado de pago no válido: {status}", field="status")
        return await self.payments.mutate(f"/payments/{payment_id}", "PUT", {"status": status}, key=payment_id)

    async def notify_holder(self, membership_id: str, message: str) -> MutationResult:
        membership = self.memberships.find(membership_id)
        if membership is None or not membership.owner_id:
            return MutationResult(ok=False, key=membership_id, error="La membresía no tiene usuario asociado")
        return await self.notify(membership_id, membership.owner_id, message)

    def active_memberships(self) -> List[Membership]:
        return [m for m in self.memberships.items if m.is_active]

    def total_revenue(self) -> float:
        return sum(p.amount for p in self.payments.items if p.status == "Completed")
