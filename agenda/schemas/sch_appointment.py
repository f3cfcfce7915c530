from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, Optional
from datetime import date as date_type, datetime
from agenda.models.mod_appointment import Appointment, AppointmentStatus

# Labels the public endpoints sometimes return instead of the enum value
STATUS_LABELS = {
    "pendiente": AppointmentStatus.PENDING,
    "confirmado": AppointmentStatus.CONFIRMED,
    "cancelado": AppointmentStatus.CANCELLED,
    "completado": AppointmentStatus.COMPLETED,
}

class AppointmentWire(BaseModel):
    id: Optional[str] = None
    professional_id: Optional[str] = Field(default=None, alias="professionalId")
    start_date_time: datetime = Field(alias="startDateTime")
    status: AppointmentStatus
    patient: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True

    @model_validator(mode='before')
    @classmethod
    def professional_from_nested(cls, data):
        # Internal listings nest the professional: {"professional": {"id": ...}}
        if isinstance(data, dict) and data.get("professionalId") is None:
            professional = data.get("professional")
            if isinstance(professional, dict) and professional.get("id") is not None:
                data = {**data, "professionalId": professional["id"]}
        return data

    @field_validator('id', 'professional_id', mode='before')
    @classmethod
    def id_as_string(cls, v):
        return None if v is None else str(v)

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            label = v.strip()
            return STATUS_LABELS.get(label.lower(), label.upper())
        return v

    @field_validator('start_date_time')
    @classmethod
    def wall_clock(cls, v):
        # Keep the written wall-clock time; an offset is never converted
        return v.replace(tzinfo=None)

    def to_appointment(self) -> Appointment:
        return Appointment(
            id=self.id,
            professional_id=self.professional_id,
            start_date_time=self.start_date_time,
            status=self.status,
            patient=self.patient,
            notes=self.notes,
        )

class PatientData(BaseModel):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    dni: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    insurance_name: Optional[str] = Field(default=None, alias="insuranceName")
    insurance_number: Optional[str] = Field(default=None, alias="insuranceNumber")

    class Config:
        populate_by_name = True

class AppointmentCreate(BaseModel):
    professional_id: str = Field(alias="professionalId")
    date: date_type = Field(description="Calendar date, yyyy-MM-dd")
    time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Slot start, HH:mm")
    patient: PatientData
    notes: Optional[str] = "Reserva web"

    class Config:
        populate_by_name = True

    @field_validator('professional_id', mode='before')
    @classmethod
    def id_as_string(cls, v):
        return None if v is None else str(v)

    @property
    def start_date_time(self) -> str:
        """Naive local date-time understood by the upstream API."""
        return f"{self.date.isoformat()}T{self.time}:00"

    def to_wire(self) -> dict:
        return {
            "professionalId": self.professional_id,
            "startDateTime": self.start_date_time,
            "notes": self.notes,
            "patient": self.patient.model_dump(by_alias=True, exclude_none=True),
        }
