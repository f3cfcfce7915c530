"""
Availability resolution engine.

Pure, synchronous functions shared by every screen that needs bookable
slots: the public booking wizard, the internal appointment form and the
availability calendar. No I/O and no logging happen here; callers supply
already-fetched snapshots of rules and appointments.

Pipeline for one (professional, date):
    1. resolve_rules   - specific-date rules override the weekly schedule
    2. expand_rules    - each rule window becomes HH:mm start times
    3. reconcile       - slots whose HH:mm matches a booked start are occupied
"""

from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from agenda.models.mod_appointment import Appointment, OccupancyPolicy
from agenda.models.mod_availability import (
    AvailabilityRule,
    CALENDAR_WEEK,
    DayOfWeek,
    ResolvedSlot,
    SpecificDateScope,
    WeeklyScope,
)

DateLike = Union[date, str]


def _to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_hhmm(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


class SlotWindow:
    """Lazy, restartable sequence of HH:mm start times inside one window.

    A slot is emitted only when it fits entirely before the end of the
    window; a trailing remainder shorter than the slot duration is dropped.
    Malformed windows (start >= end, non-positive duration) are empty.
    """

    def __init__(self, start_minutes: int, end_minutes: int, duration_minutes: int):
        self.start_minutes = start_minutes
        self.end_minutes = end_minutes
        self.duration_minutes = duration_minutes

    def _minutes(self) -> range:
        if self.duration_minutes <= 0 or self.start_minutes >= self.end_minutes:
            return range(0)
        last_start = self.end_minutes - self.duration_minutes
        return range(self.start_minutes, last_start + 1, self.duration_minutes)

    def __iter__(self) -> Iterator[str]:
        for minutes in self._minutes():
            yield _format_minutes(minutes)

    def __len__(self) -> int:
        return len(self._minutes())

    def __repr__(self) -> str:
        return (f"SlotWindow({_format_minutes(self.start_minutes)}-"
                f"{_format_minutes(self.end_minutes)}/{self.duration_minutes}min)")


class SlotEngine:
    # --- Date utilities ---

    @staticmethod
    def to_date(value: DateLike) -> date:
        """Calendar date from a date, a datetime (wall-clock part) or a yyyy-MM-dd string."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return date.fromisoformat(value.strip()[:10])

    @staticmethod
    def date_key(value: DateLike) -> str:
        return SlotEngine.to_date(value).isoformat()

    @staticmethod
    def day_of_week(value: DateLike) -> DayOfWeek:
        # isoweekday(): Monday=1 .. Sunday=7, derived from the calendar components only
        return DayOfWeek.from_number(SlotEngine.to_date(value).isoweekday() % 7)

    # --- Rule resolution ---

    @staticmethod
    def resolve_rules(rules: Iterable[AvailabilityRule], value: DateLike) -> List[AvailabilityRule]:
        """Rules that govern the given date.

        Any specific-date rule for the date, active or not, replaces the
        weekly schedule for that date. When every such rule is inactive the
        date is closed and the weekly rules are not consulted.
        """
        rules = list(rules)
        key = SlotEngine.date_key(value)

        specific = [
            rule for rule in rules
            if isinstance(rule.scope, SpecificDateScope)
            and rule.scope.specific_date.isoformat() == key
        ]
        if specific:
            return [rule for rule in specific if rule.active]

        day = SlotEngine.day_of_week(value)
        return [
            rule for rule in rules
            if isinstance(rule.scope, WeeklyScope)
            and rule.scope.day_of_week == day
            and rule.active
        ]

    # --- Slot expansion ---

    @staticmethod
    def expand_window(start: time, end: time, slot_duration_minutes: int) -> SlotWindow:
        return SlotWindow(_to_minutes(start), _to_minutes(end), slot_duration_minutes)

    @staticmethod
    def expand_rule(rule: AvailabilityRule) -> SlotWindow:
        return SlotEngine.expand_window(rule.start_time, rule.end_time, rule.slot_duration_minutes)

    @staticmethod
    def expand_rules(rules: Iterable[AvailabilityRule]) -> List[str]:
        """Union of every rule's slots, deduplicated and sorted by time of day."""
        seen = set()
        for rule in rules:
            seen.update(SlotEngine.expand_rule(rule))
        return sorted(seen, key=_parse_hhmm)

    # --- Occupancy reconciliation ---

    @staticmethod
    def appointment_time(appointment: Appointment) -> str:
        start = appointment.start_date_time
        return f"{start.hour:02d}:{start.minute:02d}"

    @staticmethod
    def occupancy_lookup(
        appointments: Iterable[Appointment],
        policy: OccupancyPolicy = OccupancyPolicy.NON_CANCELLED,
    ) -> Dict[str, Appointment]:
        lookup: Dict[str, Appointment] = {}
        for appointment in appointments:
            if not policy.occupies(appointment.status):
                continue
            lookup.setdefault(SlotEngine.appointment_time(appointment), appointment)
        return lookup

    @staticmethod
    def reconcile(
        slots: Iterable[str],
        appointments: Iterable[Appointment],
        policy: OccupancyPolicy = OccupancyPolicy.NON_CANCELLED,
    ) -> List[ResolvedSlot]:
        """Mark each slot occupied when an appointment starts at exactly that HH:mm.

        No interval overlap is computed: an appointment whose start does not
        land on a generated slot boundary occupies nothing.
        """
        lookup = SlotEngine.occupancy_lookup(appointments, policy)
        return [
            ResolvedSlot(
                time=slot,
                is_available=slot not in lookup,
                occupying_appointment=lookup.get(slot),
            )
            for slot in slots
        ]

    @staticmethod
    def appointments_for_day(
        appointments: Iterable[Appointment],
        professional_id: Optional[str],
        value: DateLike,
    ) -> List[Appointment]:
        day = SlotEngine.to_date(value)
        return [
            appointment for appointment in appointments
            if appointment.start_date_time.date() == day
            and (professional_id is None
                 or appointment.professional_id is None
                 or str(appointment.professional_id) == str(professional_id))
        ]

    # --- Composite operations ---

    @staticmethod
    def resolve_slots(
        rules: Iterable[AvailabilityRule],
        value: DateLike,
        appointments: Iterable[Appointment] = (),
        policy: OccupancyPolicy = OccupancyPolicy.NON_CANCELLED,
    ) -> List[ResolvedSlot]:
        slots = SlotEngine.expand_rules(SlotEngine.resolve_rules(rules, value))
        return SlotEngine.reconcile(slots, appointments, policy)

    @staticmethod
    def has_availability(rules: Iterable[AvailabilityRule], value: DateLike) -> bool:
        return any(len(SlotEngine.expand_rule(rule)) > 0
                   for rule in SlotEngine.resolve_rules(rules, value))

    @staticmethod
    def bookable_dates(rules: Iterable[AvailabilityRule], start: DateLike, days: int) -> List[date]:
        """Dates in [start, start + days) with at least one slot."""
        rules = list(rules)
        first = SlotEngine.to_date(start)
        candidates = (first + timedelta(days=offset) for offset in range(max(days, 0)))
        return [day for day in candidates if SlotEngine.has_availability(rules, day)]

    @staticmethod
    def group_rules(
        rules: Iterable[AvailabilityRule],
    ) -> Tuple[Dict[DayOfWeek, List[AvailabilityRule]], Dict[str, List[AvailabilityRule]]]:
        """Split rules for calendar display.

        Weekly rules are keyed by day in Monday..Sunday order, specific-date
        rules by yyyy-MM-dd in ascending order; each bucket is sorted by start
        time. Inactive rules are kept so they can still be edited.
        """
        weekly: Dict[DayOfWeek, List[AvailabilityRule]] = {}
        specific: Dict[str, List[AvailabilityRule]] = {}
        for rule in rules:
            if isinstance(rule.scope, WeeklyScope):
                weekly.setdefault(rule.scope.day_of_week, []).append(rule)
            else:
                specific.setdefault(rule.scope.specific_date.isoformat(), []).append(rule)

        by_start = lambda rule: (rule.start_time, rule.end_time)
        weekly = {day: sorted(weekly[day], key=by_start) for day in CALENDAR_WEEK if day in weekly}
        specific = {key: sorted(specific[key], key=by_start) for key in sorted(specific)}
        return weekly, specific
