"""
AnalyticsReportingScreen - Resumen de métricas y generación de reportes CSV.
"""

import logging
import os
from datetime import date
from typing import Optional

from gymdash.controllers.state import MutationResult
from gymdash.core.async_utils import run_sync_in_async
from gymdash.core.exceptions import DashboardError, ValidationError
from gymdash.schemas.analytics import AdminAnalytics
from gymdash.screens.base import DashboardScreen

logger = logging.getLogger(__name__)

REPORT_TYPES = ("users", "workouts", "memberships", "payments", "trainers")


def report_filename(report_type: str, on: Optional[date] = None) -> str:
    """Nombre del archivo descargado: {tipo}-report-{YYYY-MM-DD}.csv"""
    return f"{report_type}-report-{(on or date.today()).isoformat()}.csv"


@run_sync_in_async
def _write_report(path: str, content: bytes) -> None:
    with open(path, "wb") as f:
        f.write(content)


class AnalyticsReportingScreen(DashboardScreen):

    def __init__(self, api, credentials, navigator):
        super().__init__(api, credentials, navigator)
        self.analytics = self.controller(AdminAnalytics, name="analytics")
        self.report_error: Optional[str] = None

    async def load(self) -> None:
        await self.analytics.fetch_document("/admin/analytics")

    @property
    def summary(self) -> Optional[AdminAnalytics]:
        return self.analytics.document

    async def generate_report(
        self,
        report_type: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_id: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> MutationResult:
        """
        Genera un reporte en el servidor y lo guarda como CSV.

        Returns:
            MutationResult: data con la ruta del archivo escrito, o error
            visible si el servidor falla (la sesión se cierra ante 401/403)

        Raises:
            ValidationError: Tipo desconocido o rango de fechas invertido
        """
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Tipo de reporte no válido: {report_type}", field="reportType")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("La fecha de inicio es posterior a la fecha de fin", field="startDate")
        if not self.authorized:
            return MutationResult(ok=False, key=report_type, skipped=True, error=self.main.error)

        payload = {
            "reportType": report_type,
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
            "userId": user_id,
        }
        self.report_error = None
        try:
            content = await self.guarded(
                self.api.request_bytes("POST", "/admin/generate-report", json=payload)
            )
        except DashboardError as e:
            logger.error(f"Error generando reporte {report_type}: {e.message}")
            self.report_error = e.message
            return MutationResult(ok=False, key=report_type, error=e.message)

        path = os.path.join(output_dir or os.getcwd(), report_filename(report_type))
        await _write_report(path, content)
        logger.info(f"Reporte {report_type} guardado en {path} ({len(content)} bytes)")
        return MutationResult(ok=True, key=report_type, data=path)
