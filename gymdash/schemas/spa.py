from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from gymdash.schemas.base import ApiModel, Resource


class SpaService(Resource):
    name: str = ""
    description: str = ""
    duration: int = 0  # minutos
    price: float = 0
    image: Optional[str] = None


class SpaServicePayload(ApiModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0)
    price: float = Field(..., ge=0)
    image: Optional[str] = None


class SpaBooking(Resource):
    """Reserva de SPA. Defaults: status="Pending", service_name="Unknown Service"."""
    user_id: Any = None
    service_id: Optional[str] = None
    service_name: str = "Unknown Service"
    date: Optional[datetime] = None
    time: Optional[str] = None
    status: str = "Pending"
    is_free_session: bool = False
    price: float = 0
    notes: Optional[str] = None


BOOKING_STATUSES = ("Pending", "Confirmed", "Completed", "Cancelled", "Rejected")


class PopularService(ApiModel):
    name: str = ""
    count: int = 0


class SpaReport(ApiModel):
    """Reporte de /spa/reports. Todos los contadores por defecto en 0."""
    total_bookings: int = 0
    confirmed_bookings: int = 0
    pending_bookings: int = 0
    cancelled_bookings: int = 0
    completed_bookings: int = 0
    total_revenue: float = 0
    free_sessions_used: int = 0
    popular_services: List[PopularService] = []

    @classmethod
    def from_bookings(cls, bookings: List[SpaBooking]) -> "SpaReport":
        """Calcula los totales a partir de la lista local de reservas."""
        counts = {status: 0 for status in BOOKING_STATUSES}
        by_service = {}
        revenue = 0.0
        free_sessions = 0
        for booking in bookings:
            counts[booking.status] = counts.get(booking.status, 0) + 1
            by_service[booking.service_name] = by_service.get(booking.service_name, 0) + 1
            if booking.is_free_session:
                free_sessions += 1
            elif booking.status in ("Confirmed", "Completed"):
                revenue += booking.price
        popular = sorted(by_service.items(), key=lambda item: item[1], reverse=True)
        return cls(
            total_bookings=len(bookings),
            confirmed_bookings=counts["Confirmed"],
            pending_bookings=counts["Pending"],
            cancelled_bookings=counts["Cancelled"],
            completed_bookings=counts["Completed"],
            total_revenue=revenue,
            free_sessions_used=free_sessions,
            popular_services=[PopularService(name=name, count=count) for name, count in popular[:5]]
        )
