from fastapi import APIRouter, Depends, Query
from agenda.schemas.sch_slots import BookableDatesResponse, DaySlotsResponse
from agenda.services.svc_api_client import ApiClient
from agenda.services.svc_booking import BookingService
from agenda.services.svc_slot_cache import SlotCache
from agenda.dependencies.dep_auth import get_current_user
from agenda.dependencies.dep_clients import get_api_client, get_slot_cache
from agenda.configuration.config import Config
from agenda.models.mod_auth import AuthUser
from datetime import date
from typing import Optional

router = APIRouter(
    prefix="/professionals",
    tags=["Slots"],
    responses={404: {"description": "Not found"}},
)

@router.get("/{professional_id}/slots", response_model=DaySlotsResponse)
def get_day_slots(
    professional_id: str,
    day: date = Query(..., alias="date", description="Calendar date, yyyy-MM-dd"),
    refresh: bool = Query(False, description="Bypass the cached result"),
    client: ApiClient = Depends(get_api_client),
    cache: SlotCache = Depends(get_slot_cache),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Get the slots of a professional for one day, for the internal appointment form.

    - Occupied slots carry the appointment that holds them
    - Results are cached for a short staleness window; pass `refresh=true` to recompute
    """
    day_slots = BookingService.get_day_slots(client, cache, professional_id, day, use_cache=not refresh)
    return DaySlotsResponse.from_day(day_slots)

@router.get("/{professional_id}/slots/dates", response_model=BookableDatesResponse)
def get_bookable_dates(
    professional_id: str,
    start: Optional[date] = Query(None, description="First date to consider, defaults to today"),
    days: int = Query(Config.BOOKING_WINDOW_DAYS, ge=1, le=366),
    client: ApiClient = Depends(get_api_client),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Get the dates with at least one slot in [start, start + days).
    """
    dates = BookingService.get_bookable_dates(client, professional_id, start or date.today(), days)
    return BookableDatesResponse(professional_id=professional_id, dates=dates)
