"""
SpaManagementScreen - Servicios de SPA, reservas y reportes.

El reporte del servidor (/spa/reports?period=) se muestra tal cual; los
totales locales se recalculan desde las reservas cargadas para comparar.
"""

import logging
from typing import Any, Optional

from gymdash.controllers.state import MutationResult
from gymdash.core.async_utils import batch_gather
from gymdash.core.exceptions import ValidationError
from gymdash.schemas.spa import BOOKING_STATUSES, SpaBooking, SpaReport, SpaService, SpaServicePayload
from gymdash.screens.base import DashboardScreen, build_payload

logger = logging.getLogger(__name__)

REPORT_PERIODS = ("week", "month", "year")


class SpaManagementScreen(DashboardScreen):

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.services = self.controller(SpaService, name="spa_services")
        self.bookings = self.controller(SpaBooking, name="spa_bookings")
        self.report = self.controller(SpaReport, name="spa_report")

    async def load(self) -> None:
        await batch_gather(
            self.services.fetch_collection("/spa/services"),
            self.bookings.fetch_collection("/spa/bookings"),
        )

    async def create_service(self, data: Any) -> MutationResult:
        payload = build_payload(SpaServicePayload, data)
        return await self.services.mutate("/spa/services", "POST", payload)

    async def update_service(self, service_id: str, data: Any) -> MutationResult:
        payload = build_payload(SpaServicePayload, data)
        return await self.services.mutate(f"/spa/services/{service_id}", "PUT", payload, key=service_id)

    async def delete_service(self, service_id: str) -> MutationResult:
        return await self.services.mutate(f"/spa/services/{service_id}", "DELETE", key=service_id)

    async def update_booking_status(self, booking_id: str, status: str) -> MutationResult:
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"Estado de reserva no válido: {status}", field="status")
        return await self.bookings.mutate(f"/spa/bookings/{booking_id}", "PUT", {"status": status}, key=booking_id)

    async def generate_report(self, period: str = "month") -> Optional[SpaReport]:
        if period not in REPORT_PERIODS:
            raise ValidationError(f"Periodo no válido: {period}", field="period")
        return await self.report.fetch_document("/spa/reports", params={"period": period})

    def local_report(self) -> SpaReport:
        return SpaReport.from_bookings(self.bookings.items)
