from pydantic import BaseModel, Field, field_validator
from typing import Annotated, List, Literal, Optional, Union
from datetime import date as date_type, datetime, time
from enum import Enum
from agenda.models.mod_appointment import Appointment

class DayOfWeek(str, Enum):
    SUNDAY = "SUNDAY"
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"

    @property
    def number(self) -> int:
        """0 = Sunday ... 6 = Saturday"""
        return _DAY_ORDER.index(self)

    @classmethod
    def from_number(cls, number: int) -> "DayOfWeek":
        return _DAY_ORDER[number % 7]

_DAY_ORDER = list(DayOfWeek)

# Calendar screens list the week starting on Monday
CALENDAR_WEEK = _DAY_ORDER[1:] + _DAY_ORDER[:1]

class WeeklyScope(BaseModel):
    kind: Literal["weekly"] = "weekly"
    day_of_week: DayOfWeek

class SpecificDateScope(BaseModel):
    kind: Literal["specific_date"] = "specific_date"
    specific_date: date_type

RuleScope = Annotated[Union[WeeklyScope, SpecificDateScope], Field(discriminator="kind")]

class AvailabilityRule(BaseModel):
    id: Optional[str] = None
    scope: RuleScope
    start_time: time
    end_time: time
    slot_duration_minutes: int
    active: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def truncate_to_minute(cls, v):
        return v.replace(second=0, microsecond=0, tzinfo=None)

    @property
    def is_weekly(self) -> bool:
        return isinstance(self.scope, WeeklyScope)

    @property
    def is_specific_date(self) -> bool:
        return isinstance(self.scope, SpecificDateScope)

class ResolvedSlot(BaseModel):
    time: str                                       # HH:mm
    is_available: bool
    occupying_appointment: Optional[Appointment] = None

class DaySlots(BaseModel):
    professional_id: str
    date: date_type
    slots: List[ResolvedSlot]
    computed_at: datetime
