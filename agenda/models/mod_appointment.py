from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum

class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

class OccupancyPolicy(str, Enum):
    NON_CANCELLED = "NON_CANCELLED"     # every status except CANCELLED holds the slot
    CONFIRMED_ONLY = "CONFIRMED_ONLY"

    def occupies(self, status: AppointmentStatus) -> bool:
        if self == OccupancyPolicy.CONFIRMED_ONLY:
            return status == AppointmentStatus.CONFIRMED
        return status != AppointmentStatus.CANCELLED

class Appointment(BaseModel):
    id: Optional[str] = None
    professional_id: Optional[str] = None
    start_date_time: datetime           # naive wall-clock time
    status: AppointmentStatus
    patient: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
