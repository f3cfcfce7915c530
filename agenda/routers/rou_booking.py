from fastapi import APIRouter, Depends, Query
from agenda.schemas.sch_appointment import AppointmentCreate
from agenda.schemas.sch_slots import BookableDatesResponse, DaySlotsResponse
from agenda.services.svc_api_client import ApiClient
from agenda.services.svc_booking import BookingService
from agenda.services.svc_slot_cache import SlotCache
from agenda.dependencies.dep_clients import get_public_api_client, get_slot_cache
from agenda.configuration.config import Config
from datetime import date, timedelta
from typing import Any

router = APIRouter(
    prefix="/t/{slug}",
    tags=["Public booking"],
    responses={404: {"description": "Not found"}},
)

@router.get("/professionals/{professional_id}/dates", response_model=BookableDatesResponse)
def get_bookable_dates(
    slug: str,
    professional_id: str,
    days: int = Query(Config.BOOKING_WINDOW_DAYS, ge=1, le=366),
    client: ApiClient = Depends(get_public_api_client)
):
    """
    Get the dates a patient can book, starting tomorrow.
    """
    start = date.today() + timedelta(days=1)
    dates = BookingService.get_bookable_dates(client, professional_id, start, days, slug=slug)
    return BookableDatesResponse(professional_id=professional_id, dates=dates)

@router.get("/professionals/{professional_id}/slots", response_model=DaySlotsResponse)
def get_day_slots(
    slug: str,
    professional_id: str,
    day: date = Query(..., alias="date", description="Calendar date, yyyy-MM-dd"),
    client: ApiClient = Depends(get_public_api_client),
    cache: SlotCache = Depends(get_slot_cache)
):
    """
    Get the slots of a professional for one day.

    Occupied slots are reported without any patient data.
    """
    day_slots = BookingService.get_day_slots(client, cache, professional_id, day, slug=slug)
    return DaySlotsResponse.from_day(day_slots, include_appointments=False)

@router.post("/appointments")
def create_appointment(
    slug: str,
    appointment: AppointmentCreate,
    client: ApiClient = Depends(get_public_api_client),
    cache: SlotCache = Depends(get_slot_cache)
) -> Any:
    """
    Book an appointment in an available slot.

    - 400: the time is not a slot of that professional on that date
    - 409: the slot is already taken (checked here and again upstream)
    """
    return BookingService.create_appointment(client, cache, slug, appointment)
