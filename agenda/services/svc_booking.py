from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional
from agenda.configuration.config import Config
from agenda.models.mod_appointment import Appointment, OccupancyPolicy
from agenda.models.mod_availability import AvailabilityRule, DaySlots
from agenda.schemas.sch_appointment import AppointmentCreate, AppointmentWire
from agenda.services.svc_api_client import ApiClient, UpstreamError
from agenda.services.svc_availability import AvailabilityService
from agenda.services.svc_slot_cache import SlotCache
from agenda.services.svc_slots import SlotEngine
from agenda.validators.val_booking import BookingValidator, SlotConflictError
from agenda.configuration.monitor import log_event, log_exception, log_metric, start_span

class BookingService:
    @staticmethod
    def occupancy_policy() -> OccupancyPolicy:
        return Config.OCCUPANCY_POLICY

    @staticmethod
    def cache_scope(client: ApiClient, slug: Optional[str] = None) -> str:
        """Tenant a resolved day belongs to: the public slug, else the caller's tenant"""
        if slug:
            return f"slug:{slug}"
        return f"tenant:{client.tenant_id or '-'}"

    @staticmethod
    def parse_appointments(items: Iterable[Any], professional_id: str, day: date) -> List[Appointment]:
        """Convert upstream appointments, keeping only the professional's appointments on that day"""
        appointments = []
        for item in items:
            try:
                appointments.append(AppointmentWire.model_validate(item).to_appointment())
            except ValueError as e:
                log_exception(e, {
                    "operation": "parse_appointment",
                    "professional_id": professional_id,
                    "appointment_id": item.get("id") if isinstance(item, dict) else None
                })
        return SlotEngine.appointments_for_day(appointments, professional_id, day)

    @staticmethod
    def _fetch_rules(client: ApiClient, professional_id: str, slug: Optional[str]) -> List[AvailabilityRule]:
        if slug:
            return AvailabilityService.get_public_rules(client, slug, professional_id)
        return AvailabilityService.get_rules(client, professional_id)

    @staticmethod
    def compute_day(client: ApiClient, professional_id: str, day: date, slug: Optional[str] = None,
                    rules: Optional[List[AvailabilityRule]] = None) -> DaySlots:
        """Resolve the day's slots from fresh appointments and the given or freshly fetched rules"""
        if rules is None:
            rules = BookingService._fetch_rules(client, professional_id, slug)

        appointments: List[Appointment] = []
        # Closed days need no occupancy data
        if SlotEngine.resolve_rules(rules, day):
            if slug:
                items = client.fetch_public_appointments(slug, professional_id, day)
            else:
                items = client.fetch_appointments(professional_id, day)
            appointments = BookingService.parse_appointments(items, professional_id, day)

        slots = SlotEngine.resolve_slots(rules, day, appointments, BookingService.occupancy_policy())
        return DaySlots(
            professional_id=str(professional_id),
            date=day,
            slots=slots,
            computed_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def get_day_slots(client: ApiClient, cache: SlotCache, professional_id: str, day: date,
                      slug: Optional[str] = None, use_cache: bool = True) -> DaySlots:
        """Cache-or-compute the day's slots.

        Internal days carry patient data and the caller's token is only read
        here, never verified. The rule fetch goes upstream on every internal
        call, so the caller is authorised there before a cached day is served.
        """
        scope = BookingService.cache_scope(client, slug)
        try:
            with start_span("get_day_slots", attributes={"professional_id": professional_id, "date": day.isoformat()}):
                rules = None
                if not slug:
                    rules = BookingService._fetch_rules(client, professional_id, slug)

                if use_cache:
                    cached = cache.get(scope, professional_id, day)
                    if cached is not None:
                        log_metric("slot_cache_hit", 1, {"professional_id": professional_id, "date": day.isoformat()})
                        return cached

                day_slots = BookingService.compute_day(client, professional_id, day, slug, rules=rules)
                cache.set(scope, day_slots)

                log_event("Day slots resolved", {
                    "professional_id": professional_id,
                    "date": day.isoformat(),
                    "slots": len(day_slots.slots),
                    "available": sum(1 for slot in day_slots.slots if slot.is_available)
                })
                return day_slots
        except Exception as e:
            log_exception(e, {"operation": "get_day_slots", "professional_id": professional_id, "date": day.isoformat()})
            raise

    @staticmethod
    def get_bookable_dates(client: ApiClient, professional_id: str, start: date, days: int,
                           slug: Optional[str] = None) -> List[date]:
        try:
            with start_span("get_bookable_dates", attributes={"professional_id": professional_id}):
                rules = BookingService._fetch_rules(client, professional_id, slug)
                dates = SlotEngine.bookable_dates(rules, start, days)

                log_event("Bookable dates resolved", {
                    "professional_id": professional_id,
                    "start": start.isoformat(),
                    "days": days,
                    "count": len(dates)
                })
                return dates
        except Exception as e:
            log_exception(e, {"operation": "get_bookable_dates", "professional_id": professional_id})
            raise

    @staticmethod
    def create_appointment(client: ApiClient, cache: SlotCache, slug: str, appointment: AppointmentCreate) -> Any:
        """Book a slot after re-checking it against fresh data.

        The check is advisory: two callers can still race for the same slot,
        and the upstream API is the one that rejects the second booking.
        """
        professional_id = appointment.professional_id
        try:
            with start_span("create_appointment", attributes={
                "professional_id": professional_id,
                "date": appointment.date.isoformat(),
                "time": appointment.time
            }):
                log_event("Create appointment started", {
                    "slug": slug,
                    "professional_id": professional_id,
                    "start_date_time": appointment.start_date_time
                })

                fresh = BookingService.compute_day(client, professional_id, appointment.date, slug)
                cache.set(BookingService.cache_scope(client, slug), fresh)

                # Validate business rules
                BookingValidator.validate_create_appointment(appointment, fresh.slots)

                try:
                    created = client.create_appointment(slug, appointment.to_wire())
                except UpstreamError as e:
                    if e.status_code == 409:
                        cache.invalidate(professional_id, appointment.date)
                        raise SlotConflictError(e.message) from e
                    raise

                cache.invalidate(professional_id, appointment.date)

                log_event("Appointment created successfully", {
                    "slug": slug,
                    "professional_id": professional_id,
                    "start_date_time": appointment.start_date_time
                })
                return created
        except Exception as e:
            log_exception(e, {
                "operation": "create_appointment",
                "slug": slug,
                "professional_id": professional_id
            })
            raise
