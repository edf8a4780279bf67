from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .models import AppointmentStatus, EmergencyAlertStatus, ReceiptStatus


# --- Receipts & queue ---
class ReceiptCreate(BaseModel):
    user_id: int
    image_url: str = Field(min_length=1)
    hospital_id: Optional[int] = None
    condition: Optional[str] = None
    severity: Optional[int] = None
    ai_analysis: Optional[str] = None


class ReceiptOut(BaseModel):
    id: int
    user_id: int
    image_url: str
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    condition: Optional[str] = None
    severity: Optional[int] = None
    hospital_id: Optional[int] = None
    doctor_id: Optional[int] = None
    status: ReceiptStatus
    queue_position: Optional[int] = None
    ai_analysis: Optional[str] = None

    model_config = {"from_attributes": True}


class EnqueueRequest(BaseModel):
    hospital_id: int


class EnqueueResponse(BaseModel):
    receipt_id: int
    hospital_id: int
    queue_position: int


class AdvanceRequest(BaseModel):
    status: ReceiptStatus
    doctor_id: Optional[int] = None


# --- Appointments ---
class AppointmentCreate(BaseModel):
    user_id: int
    hospital_id: int
    symptoms: str = Field(min_length=1)
    preferred_date: datetime
    severity: Optional[int] = None
    ai_analysis: Optional[str] = None


class AppointmentConfirm(BaseModel):
    scheduled_date: Optional[datetime] = None
    doctor_id: Optional[int] = None


class AppointmentOut(BaseModel):
    id: int
    user_id: int
    hospital_id: int
    doctor_id: Optional[int] = None
    symptoms: str
    ai_analysis: Optional[str] = None
    severity: Optional[int] = None
    status: AppointmentStatus
    preferred_date: datetime
    scheduled_date: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# --- Emergency alerts ---
class EmergencyAlertCreate(BaseModel):
    user_id: int
    hospital_id: int
    patient_info: Dict[str, Any]
    medical_history: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None


class AlertNotes(BaseModel):
    notes: Optional[str] = None


class EmergencyAlertOut(BaseModel):
    id: int
    user_id: int
    hospital_id: int
    status: EmergencyAlertStatus
    patient_info: Dict[str, Any]
    medical_history: Dict[str, Any]
    notes: Optional[str] = None
    created_at: datetime
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HospitalSummary(BaseModel):
    hospital_id: int
    hospital_name: str
    receipts: Dict[str, int]
    appointments: Dict[str, int]
    emergency_alerts: Dict[str, int]
    next_receipt_id: Optional[int] = None


# --- Hospitals & doctors ---
class DoctorCreate(BaseModel):
    name: str = Field(min_length=1)
    specialty: str = Field(min_length=1)
    available: bool = True


class HospitalCreate(BaseModel):
    name: str = Field(min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    doctors: List[DoctorCreate] = Field(default_factory=list)


class HospitalOut(BaseModel):
    id: int
    name: str
    city: Optional[str] = None
    state: Optional[str] = None

    model_config = {"from_attributes": True}


class DoctorOut(BaseModel):
    id: int
    name: str
    specialty: str
    hospital_id: int
    available: bool

    model_config = {"from_attributes": True}


class DoctorRosterEntry(DoctorOut):
    queued_patients: int


class DoctorAvailability(BaseModel):
    available: bool


# --- Medicine reminders ---
class MedicineReminderCreate(BaseModel):
    name: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    frequency: str = Field(min_length=1)
    time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    notes: Optional[str] = None
    ai_generated: bool = False


class MedicineReminderUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    dosage: Optional[str] = Field(default=None, min_length=1)
    frequency: Optional[str] = None
    time: Optional[str] = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class MedicineReminderOut(BaseModel):
    id: int
    user_id: int
    name: str
    dosage: str
    frequency: str
    time: str
    notes: Optional[str] = None
    is_active: bool
    ai_generated: bool
    created_at: datetime

    model_config = {"from_attributes": True}
