import pytest
from datetime import date, datetime, time

from agenda.services.svc_slots import SlotEngine, SlotWindow
from agenda.models.mod_availability import (
    AvailabilityRule,
    DayOfWeek,
    SpecificDateScope,
    WeeklyScope,
)
from agenda.models.mod_appointment import Appointment, AppointmentStatus, OccupancyPolicy


def weekly(day, start, end, duration, active=True, rule_id=None):
    return AvailabilityRule(
        id=rule_id,
        scope=WeeklyScope(day_of_week=day),
        start_time=start,
        end_time=end,
        slot_duration_minutes=duration,
        active=active,
    )


def specific(on, start, end, duration, active=True, rule_id=None):
    return AvailabilityRule(
        id=rule_id,
        scope=SpecificDateScope(specific_date=on),
        start_time=start,
        end_time=end,
        slot_duration_minutes=duration,
        active=active,
    )


def appointment(start, status=AppointmentStatus.CONFIRMED, professional_id="prof1", appointment_id="a1"):
    return Appointment(
        id=appointment_id,
        professional_id=professional_id,
        start_date_time=start,
        status=status,
    )


class TestDateUtilities:
    def test_date_key_from_string_and_date(self):
        assert SlotEngine.date_key("2024-03-04") == "2024-03-04"
        assert SlotEngine.date_key(date(2024, 3, 4)) == "2024-03-04"

    def test_date_key_of_datetime_uses_wall_clock_date(self):
        assert SlotEngine.date_key(datetime(2024, 3, 4, 23, 30)) == "2024-03-04"

    @pytest.mark.parametrize("value, expected", [
        ("2024-03-03", DayOfWeek.SUNDAY),
        ("2024-03-04", DayOfWeek.MONDAY),
        ("2024-02-29", DayOfWeek.THURSDAY),
        ("2024-03-09", DayOfWeek.SATURDAY),
        (date(2000, 1, 1), DayOfWeek.SATURDAY),
    ])
    def test_day_of_week(self, value, expected):
        assert SlotEngine.day_of_week(value) == expected

    def test_day_numbering_starts_on_sunday(self):
        assert DayOfWeek.SUNDAY.number == 0
        assert DayOfWeek.MONDAY.number == 1
        assert DayOfWeek.SATURDAY.number == 6
        assert DayOfWeek.from_number(3) == DayOfWeek.WEDNESDAY


class TestResolveRules:
    def test_no_rules_resolves_to_empty(self):
        assert SlotEngine.resolve_rules([], "2024-03-04") == []
        assert SlotEngine.resolve_slots([], "2024-03-04") == []

    def test_weekly_rules_for_matching_day(self):
        monday = weekly(DayOfWeek.MONDAY, time(8), time(12), 30, rule_id="w1")
        tuesday = weekly(DayOfWeek.TUESDAY, time(8), time(12), 30, rule_id="w2")
        assert SlotEngine.resolve_rules([monday, tuesday], "2024-03-04") == [monday]

    def test_inactive_weekly_rules_are_ignored(self):
        rule = weekly(DayOfWeek.MONDAY, time(8), time(12), 30, active=False)
        assert SlotEngine.resolve_rules([rule], "2024-03-04") == []

    def test_specific_date_overrides_weekly(self):
        monday = weekly(DayOfWeek.MONDAY, time(8), time(12), 30)
        override = specific(date(2024, 3, 4), time(14), time(16), 60)
        assert SlotEngine.resolve_rules([monday, override], "2024-03-04") == [override]

    def test_all_inactive_specific_rules_close_the_date(self):
        monday = weekly(DayOfWeek.MONDAY, time(8), time(12), 30)
        closed = specific(date(2024, 3, 4), time(8), time(12), 30, active=False)
        assert SlotEngine.resolve_rules([monday, closed], "2024-03-04") == []
        assert SlotEngine.resolve_slots([monday, closed], "2024-03-04") == []

    def test_mixed_specific_rules_keep_only_active(self):
        active = specific(date(2024, 3, 4), time(9), time(10), 30, rule_id="s1")
        inactive = specific(date(2024, 3, 4), time(15), time(16), 30, active=False, rule_id="s2")
        assert SlotEngine.resolve_rules([active, inactive], date(2024, 3, 4)) == [active]

    def test_specific_rule_for_other_date_does_not_override(self):
        monday = weekly(DayOfWeek.MONDAY, time(8), time(9), 30)
        other = specific(date(2024, 3, 5), time(14), time(16), 60)
        assert SlotEngine.resolve_rules([monday, other], "2024-03-04") == [monday]

    def test_resolution_is_idempotent(self):
        rules = [
            weekly(DayOfWeek.MONDAY, time(14), time(16), 30),
            weekly(DayOfWeek.MONDAY, time(8), time(10), 30),
        ]
        first = SlotEngine.resolve_slots(rules, "2024-03-11")
        second = SlotEngine.resolve_slots(rules, "2024-03-11")
        assert first == second


class TestExpansion:
    def test_trailing_boundary_excluded(self):
        assert list(SlotEngine.expand_window(time(8), time(9), 30)) == ["08:00", "08:30"]

    def test_partial_trailing_slot_dropped(self):
        # 08:30 would end at 09:00, past the 08:50 close
        assert list(SlotEngine.expand_window(time(8), time(8, 50), 30)) == ["08:00"]
        assert len(SlotEngine.expand_window(time(8), time(8, 50), 30)) == 1

    def test_uneven_minutes_cross_hours(self):
        assert list(SlotEngine.expand_window(time(9, 40), time(11), 20)) == ["09:40", "10:00", "10:20", "10:40"]

    def test_window_is_restartable(self):
        window = SlotEngine.expand_window(time(8), time(10), 45)
        assert list(window) == ["08:00", "08:45"]
        assert list(window) == ["08:00", "08:45"]
        assert len(window) == 2

    @pytest.mark.parametrize("start, end, duration", [
        (time(9), time(9), 30),
        (time(10), time(9), 30),
        (time(8), time(9), 0),
        (time(8), time(9), -15),
        (time(8), time(8, 20), 30),
    ])
    def test_malformed_or_short_windows_are_empty(self, start, end, duration):
        assert list(SlotEngine.expand_window(start, end, duration)) == []

    def test_slot_window_repr(self):
        assert repr(SlotWindow(480, 540, 30)) == "SlotWindow(08:00-09:00/30min)"

    def test_multiple_rules_are_merged_deduplicated_and_sorted(self):
        afternoon = weekly(DayOfWeek.MONDAY, time(14), time(15), 30)
        morning = weekly(DayOfWeek.MONDAY, time(8), time(9), 30)
        overlapping = weekly(DayOfWeek.MONDAY, time(8, 30), time(9, 30), 30)
        assert SlotEngine.expand_rules([afternoon, morning, overlapping]) == [
            "08:00", "08:30", "09:00", "14:00", "14:30"
        ]


class TestReconcile:
    def test_exact_start_time_marks_slot_occupied(self):
        booked = appointment(datetime(2024, 2, 12, 9, 30))
        result = SlotEngine.reconcile(["09:00", "09:30", "10:00"], [booked])

        assert [slot.time for slot in result] == ["09:00", "09:30", "10:00"]
        assert [slot.is_available for slot in result] == [True, False, True]
        assert result[1].occupying_appointment == booked
        assert result[0].occupying_appointment is None

    def test_seconds_are_ignored(self):
        booked = appointment(datetime(2024, 2, 12, 9, 30, 45))
        result = SlotEngine.reconcile(["09:30"], [booked])
        assert result[0].is_available is False

    def test_off_boundary_appointment_occupies_nothing(self):
        booked = appointment(datetime(2024, 2, 12, 9, 15))
        result = SlotEngine.reconcile(["09:00", "09:30"], [booked])
        assert all(slot.is_available for slot in result)

    def test_cancelled_appointments_do_not_occupy(self):
        cancelled = appointment(datetime(2024, 2, 12, 9, 0), AppointmentStatus.CANCELLED)
        result = SlotEngine.reconcile(["09:00"], [cancelled])
        assert result[0].is_available is True

    @pytest.mark.parametrize("status", [
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
    ])
    def test_non_cancelled_statuses_occupy_by_default(self, status):
        result = SlotEngine.reconcile(["09:00"], [appointment(datetime(2024, 2, 12, 9, 0), status)])
        assert result[0].is_available is False

    def test_confirmed_only_policy_frees_pending(self):
        pending = appointment(datetime(2024, 2, 12, 9, 0), AppointmentStatus.PENDING)
        result = SlotEngine.reconcile(["09:00"], [pending], OccupancyPolicy.CONFIRMED_ONLY)
        assert result[0].is_available is True

    def test_first_appointment_wins_for_same_time(self):
        first = appointment(datetime(2024, 2, 12, 9, 0), appointment_id="first")
        second = appointment(datetime(2024, 2, 12, 9, 0), appointment_id="second")
        result = SlotEngine.reconcile(["09:00"], [first, second])
        assert result[0].occupying_appointment.id == "first"

    def test_appointments_for_day_filters_professional_and_date(self):
        keep = appointment(datetime(2024, 2, 12, 9, 0), professional_id="prof1", appointment_id="keep")
        other_day = appointment(datetime(2024, 2, 13, 9, 0), professional_id="prof1", appointment_id="day")
        other_prof = appointment(datetime(2024, 2, 12, 9, 0), professional_id="prof2", appointment_id="prof")
        result = SlotEngine.appointments_for_day([keep, other_day, other_prof], "prof1", "2024-02-12")
        assert [a.id for a in result] == ["keep"]


class TestEndToEnd:
    @pytest.fixture
    def rules(self):
        return [
            weekly(DayOfWeek.MONDAY, time(8), time(12), 30, rule_id="weekly-monday"),
            specific(date(2024, 3, 4), time(14), time(16), 60, rule_id="override"),
        ]

    def test_override_date_only_uses_specific_rule(self, rules):
        slots = SlotEngine.resolve_slots(rules, "2024-03-04")
        assert [slot.time for slot in slots] == ["14:00", "15:00"]

    def test_other_monday_uses_weekly_rule(self, rules):
        slots = SlotEngine.resolve_slots(rules, "2024-03-11")
        assert [slot.time for slot in slots] == [
            "08:00", "08:30", "09:00", "09:30", "10:00", "10:30", "11:00", "11:30"
        ]
        assert all(slot.is_available for slot in slots)

    def test_bookable_dates(self, rules):
        closed = specific(date(2024, 3, 18), time(8), time(12), 30, active=False)
        dates = SlotEngine.bookable_dates(rules + [closed], date(2024, 3, 1), 21)
        assert dates == [date(2024, 3, 4), date(2024, 3, 11)]

    def test_has_availability_requires_a_slot(self):
        too_short = weekly(DayOfWeek.MONDAY, time(8), time(8, 20), 30)
        assert SlotEngine.has_availability([too_short], "2024-03-04") is False

    def test_group_rules_for_calendar(self, rules):
        sunday = weekly(DayOfWeek.SUNDAY, time(9), time(10), 30, rule_id="sunday")
        early_monday = weekly(DayOfWeek.MONDAY, time(7), time(8), 30, rule_id="early")
        inactive = specific(date(2024, 2, 1), time(9), time(10), 30, active=False, rule_id="feb")
        weekly_rules, specific_rules = SlotEngine.group_rules(rules + [sunday, early_monday, inactive])

        assert list(weekly_rules) == [DayOfWeek.MONDAY, DayOfWeek.SUNDAY]
        assert [r.id for r in weekly_rules[DayOfWeek.MONDAY]] == ["early", "weekly-monday"]
        assert list(specific_rules) == ["2024-02-01", "2024-03-04"]
        assert specific_rules["2024-02-01"][0].active is False
