from datetime import time
from typing import List
from fastapi import HTTPException
from agenda.schemas.sch_availability import AvailabilityRuleCreate

class AvailabilityValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class AvailabilityValidator:
    @staticmethod
    def _minutes(value: time) -> int:
        return value.hour * 60 + value.minute

    @staticmethod
    def validate_scope(rule: AvailabilityRuleCreate):
        """A rule is either weekly or for one specific date, never both"""
        if rule.day_of_week is not None and rule.specific_date is not None:
            raise AvailabilityValidationError(
                "A rule cannot have both dayOfWeek and specificDate"
            )
        if rule.day_of_week is None and rule.specific_date is None:
            raise AvailabilityValidationError(
                "A rule requires either dayOfWeek or specificDate"
            )

    @staticmethod
    def validate_time_window(rule: AvailabilityRuleCreate):
        """Validate start and end times"""
        if rule.start_time >= rule.end_time:
            raise AvailabilityValidationError(
                "startTime must be before endTime"
            )

    @staticmethod
    def validate_slot_duration(rule: AvailabilityRuleCreate):
        """Validate that the slot duration is positive and fits the window at least once"""
        if rule.slot_duration_minutes <= 0:
            raise AvailabilityValidationError(
                "slotDurationMinutes must be a positive number of minutes"
            )
        window = AvailabilityValidator._minutes(rule.end_time) - AvailabilityValidator._minutes(rule.start_time)
        if rule.slot_duration_minutes > window:
            raise AvailabilityValidationError(
                f"A {rule.slot_duration_minutes} minute slot does not fit between "
                f"{rule.start_time.strftime('%H:%M')} and {rule.end_time.strftime('%H:%M')}"
            )

    @staticmethod
    def validate_create_rule(rule: AvailabilityRuleCreate):
        """Validate all rules for authoring a single availability rule"""
        AvailabilityValidator.validate_scope(rule)
        AvailabilityValidator.validate_time_window(rule)
        AvailabilityValidator.validate_slot_duration(rule)

    @staticmethod
    def validate_replace_rules(rules: List[AvailabilityRuleCreate]):
        """Validate a full replacement of a professional's rules"""
        for index, rule in enumerate(rules):
            try:
                AvailabilityValidator.validate_create_rule(rule)
            except AvailabilityValidationError as e:
                raise AvailabilityValidationError(f"Rule {index + 1}: {e.detail}")
