from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date as date_type, datetime
from agenda.models.mod_appointment import Appointment, AppointmentStatus
from agenda.models.mod_availability import DaySlots, ResolvedSlot

class OccupyingAppointment(BaseModel):
    id: Optional[str] = None
    start_date_time: datetime = Field(alias="startDateTime")
    status: AppointmentStatus
    patient: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "OccupyingAppointment":
        return cls(
            id=appointment.id,
            start_date_time=appointment.start_date_time,
            status=appointment.status,
            patient=appointment.patient,
        )

class ResolvedSlotResponse(BaseModel):
    time: str
    is_available: bool = Field(alias="isAvailable")
    appointment: Optional[OccupyingAppointment] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_slot(cls, slot: ResolvedSlot, include_appointment: bool = True) -> "ResolvedSlotResponse":
        appointment = None
        if include_appointment and slot.occupying_appointment is not None:
            appointment = OccupyingAppointment.from_appointment(slot.occupying_appointment)
        return cls(time=slot.time, is_available=slot.is_available, appointment=appointment)

class DaySlotsResponse(BaseModel):
    professional_id: str = Field(alias="professionalId")
    date: date_type
    slots: List[ResolvedSlotResponse]
    computed_at: datetime = Field(alias="computedAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_day(cls, day: DaySlots, include_appointments: bool = True) -> "DaySlotsResponse":
        return cls(
            professional_id=day.professional_id,
            date=day.date,
            slots=[ResolvedSlotResponse.from_slot(slot, include_appointments) for slot in day.slots],
            computed_at=day.computed_at,
        )

class BookableDatesResponse(BaseModel):
    professional_id: str = Field(alias="professionalId")
    dates: List[date_type]

    class Config:
        populate_by_name = True
