from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, time
from agenda.models.mod_availability import (
    AvailabilityRule,
    DayOfWeek,
    SpecificDateScope,
    WeeklyScope,
)

class AvailabilityRuleCreate(BaseModel):
    day_of_week: Optional[DayOfWeek] = Field(default=None, alias="dayOfWeek")
    specific_date: Optional[date] = Field(default=None, alias="specificDate")
    start_time: time = Field(alias="startTime", description="Time of day, HH:mm or HH:mm:ss")
    end_time: time = Field(alias="endTime", description="Time of day, HH:mm or HH:mm:ss")
    slot_duration_minutes: int = Field(alias="slotDurationMinutes")
    active: bool = True

    class Config:
        populate_by_name = True

    @field_validator('day_of_week', 'specific_date', mode='before')
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('active', mode='before')
    @classmethod
    def missing_active_means_active(cls, v):
        return True if v is None else v

    @field_validator('start_time', 'end_time')
    @classmethod
    def truncate_seconds(cls, v):
        return v.replace(second=0, microsecond=0, tzinfo=None)

    def to_rule(self, rule_id: Optional[str] = None) -> AvailabilityRule:
        """Build the domain rule. A specific date wins over a day of week."""
        if self.specific_date is not None:
            scope = SpecificDateScope(specific_date=self.specific_date)
        elif self.day_of_week is not None:
            scope = WeeklyScope(day_of_week=self.day_of_week)
        else:
            raise ValueError("Availability rule has neither dayOfWeek nor specificDate")
        return AvailabilityRule(
            id=rule_id,
            scope=scope,
            start_time=self.start_time,
            end_time=self.end_time,
            slot_duration_minutes=self.slot_duration_minutes,
            active=self.active,
        )

class AvailabilityRuleWire(AvailabilityRuleCreate):
    """Rule as exchanged with the upstream API and the UI."""
    id: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def id_as_string(cls, v):
        return None if v is None else str(v)

    def to_rule(self, rule_id: Optional[str] = None) -> AvailabilityRule:
        return super().to_rule(rule_id if rule_id is not None else self.id)

    @classmethod
    def from_rule(cls, rule: AvailabilityRule) -> "AvailabilityRuleWire":
        return cls(
            id=rule.id,
            day_of_week=rule.scope.day_of_week if isinstance(rule.scope, WeeklyScope) else None,
            specific_date=rule.scope.specific_date if isinstance(rule.scope, SpecificDateScope) else None,
            start_time=rule.start_time,
            end_time=rule.end_time,
            slot_duration_minutes=rule.slot_duration_minutes,
            active=rule.active,
        )

    def to_wire(self, include_id: bool = True) -> dict:
        """JSON body for the upstream API (times as HH:mm:ss)."""
        body = self.model_dump(mode="json", by_alias=True)
        if not include_id:
            body.pop("id", None)
        return body

class RuleCalendarResponse(BaseModel):
    weekly: Dict[DayOfWeek, List[AvailabilityRuleWire]]
    specific_dates: Dict[str, List[AvailabilityRuleWire]] = Field(alias="specificDates")

    class Config:
        populate_by_name = True
