from datetime import date
from typing import List
from fastapi import HTTPException
from agenda.models.mod_availability import ResolvedSlot
from agenda.schemas.sch_appointment import AppointmentCreate

class BookingValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class SlotConflictError(HTTPException):
    def __init__(self, detail: str = "The selected time is no longer available"):
        super().__init__(status_code=409, detail=detail)

class BookingValidator:
    @staticmethod
    def _get_today() -> date:
        """Get the current local calendar date"""
        return date.today()

    @staticmethod
    def validate_future_date(booking_date: date):
        """Validate that a booking is not for a past day"""
        if booking_date < BookingValidator._get_today():
            raise BookingValidationError(
                "Appointments cannot be booked for past dates"
            )

    @staticmethod
    def validate_slot(slot_time: str, slots: List[ResolvedSlot]):
        """Validate that the requested time is a generated slot and still free"""
        slot = next((s for s in slots if s.time == slot_time), None)
        if slot is None:
            raise BookingValidationError(
                f"{slot_time} is not an available slot for this professional on that date"
            )
        if not slot.is_available:
            raise SlotConflictError(
                f"The {slot_time} slot is already taken"
            )

    @staticmethod
    def validate_create_appointment(appointment: AppointmentCreate, slots: List[ResolvedSlot]):
        """Validate all rules for creating an appointment"""
        BookingValidator.validate_future_date(appointment.date)
        BookingValidator.validate_slot(appointment.time, slots)
